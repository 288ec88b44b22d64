"""Create pedigree (FAM) files for peddy from sample VCF file names.

Sequencing pipelines name per-sample VCFs with the declared sex as an
underscore delimited token, for example ``sample1_M_001.vcf.gz``. The sample
identifier is the file name without extensions, trailing pipeline marker and
dangling sex token. Each VCF gets a single unrelated family.

FAM columns: family, individual, paternal, maternal, sex, phenotype.
Sex codes: 1=male, 2=female, 0=unknown.
"""
import collections
import csv
import os
import re

import toolz as tz

from peddyqc import utils
from peddyqc.distributed.transaction import file_transaction
from peddyqc.log import logger
from peddyqc.variation import vcfutils

PedRecord = collections.namedtuple("PedRecord", ["family_id", "sample_id", "father_id",
                                                 "mother_id", "sex", "phenotype"])

SEX_CODES = {"M": 1, "F": 2}
UNKNOWN_SEX = 0
DEFAULT_MARKERS = ("_001",)
DEFAULT_PHENOTYPE = 2
FAMILY_PREFIX = "FAM"

_SEX_RE = re.compile(r"_(?=([MF])_)")
_TRAILING_SEX_RE = re.compile(r"_[MF]$")

def sex_from_filename(fname):
    """Declared sex code from an `_M_` or `_F_` token in the file name.

    When several tokens are present the last one wins.
    """
    matches = _SEX_RE.findall(os.path.basename(fname))
    if matches:
        return SEX_CODES[matches[-1]]
    return UNKNOWN_SEX

def sample_from_filename(fname, markers=DEFAULT_MARKERS):
    """Sample identifier from a VCF file name.

    peddy rejects sample names containing `.`, so everything from the first
    `.` onwards is treated as extension.
    """
    name = os.path.basename(fname).split(".")[0]
    for marker in markers:
        if marker and name.endswith(marker) and len(name) > len(marker):
            name = name[:-len(marker)]
            break
    stripped = _TRAILING_SEX_RE.sub("", name)
    return stripped or name

def _unique_name(name, seen):
    if name not in seen:
        return name
    i = 2
    while "%s_%s" % (name, i) in seen:
        i += 1
    new_name = "%s_%s" % (name, i)
    logger.warning("Duplicate sample name %s, renaming to %s" % (name, new_name))
    return new_name

def build_records(vcf_files, config=None):
    """Build one pedigree record per VCF, ordered by file name.

    Returns (vcf_file, PedRecord) pairs so callers can rewrite each VCF's
    sample name to match its record.
    """
    if config is None: config = {}
    markers = tz.get_in(["pedigree", "markers"], config, DEFAULT_MARKERS)
    phenotype = tz.get_in(["pedigree", "phenotype"], config, DEFAULT_PHENOTYPE)
    seen = set([])
    out = []
    for i, vcf_file in enumerate(utils.sort_filenames(list(vcf_files))):
        sample_id = _unique_name(sample_from_filename(vcf_file, markers), seen)
        seen.add(sample_id)
        sex = sex_from_filename(vcf_file)
        if sex == UNKNOWN_SEX:
            logger.info("No declared sex found in %s, recording as unknown" %
                        os.path.basename(vcf_file))
        out.append((vcf_file, PedRecord("%s%s" % (FAMILY_PREFIX, i + 1), sample_id,
                                        "0", "0", sex, phenotype)))
    return out

def write_fam_file(records, out_file, config=None):
    """Write tab delimited pedigree records, one line per sample.
    """
    with file_transaction(config, out_file) as tx_out_file:
        with open(tx_out_file, "w") as out_handle:
            writer = csv.writer(out_handle, dialect="excel-tab", lineterminator="\n")
            for rec in records:
                writer.writerow([rec.family_id, rec.sample_id, rec.father_id,
                                 rec.mother_id, rec.sex, rec.phenotype])
    logger.info("Wrote pedigree for %s samples to %s" % (len(records), out_file))
    return out_file

def read_fam_file(fam_file):
    out = []
    with open(fam_file) as in_handle:
        reader = csv.reader(in_handle, dialect="excel-tab")
        for parts in reader:
            if parts and not parts[0].startswith("#"):
                out.append(PedRecord(parts[0], parts[1], parts[2], parts[3],
                                     int(parts[4]), int(parts[5])))
    return out

def check_vcf_samples(records, vcf_file):
    """Ensure pedigree samples exactly match the samples in a VCF header.

    peddy can only associate pedigree and genotypes on identical names.
    """
    ped_samples = [r.sample_id for r in records]
    vcf_samples = vcfutils.get_samples(vcf_file)
    missing = sorted(set(ped_samples) - set(vcf_samples))
    extra = sorted(set(vcf_samples) - set(ped_samples))
    if missing or extra or len(ped_samples) != len(vcf_samples):
        raise ValueError("Pedigree samples do not match %s. Missing from VCF: %s; "
                         "not in pedigree: %s" % (vcf_file, missing, extra))
    return True

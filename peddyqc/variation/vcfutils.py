"""Utilities for manipulating variant files with bcftools.
"""
import os
from collections import defaultdict

from peddyqc import utils
from peddyqc.distributed.transaction import file_transaction
from peddyqc.log import logger
from peddyqc.pipeline import config_utils
from peddyqc.provenance import do
from peddyqc.provenance.do import Command

def get_samples(in_file):
    """Retrieve samples present in a VCF file
    """
    with utils.open_gzipsafe(in_file) as in_handle:
        for line in in_handle:
            if line.startswith("#CHROM"):
                parts = line.strip().split("\t")
                return parts[9:]
    raise ValueError("Did not find sample header in VCF file %s" % in_file)

# ## Command builders

def reheader_cmd(bcftools, in_file, samples_file, out_file):
    return Command([bcftools, "reheader", "-s", samples_file, "-o", out_file, in_file],
                   "Rename sample in %s" % os.path.basename(in_file), [out_file])

def index_cmd(bcftools, in_file):
    """Tabix style index, replacing any existing `.tbi` from the pipeline.
    """
    return Command([bcftools, "index", "-t", "-f", in_file],
                   "Index %s" % os.path.basename(in_file), [in_file + ".tbi"])

def merge_cmd(bcftools, in_files, out_file, cores=1):
    output_type = "z" if out_file.endswith(".gz") else "v"
    return Command([bcftools, "merge", "--threads", str(cores), "-O", output_type,
                    "-o", out_file] + list(in_files),
                   "Merge %s VCFs into %s" % (len(in_files), os.path.basename(out_file)),
                   [out_file])

# ## Running

def index_vcf(in_file, config):
    bcftools = config_utils.get_program("bcftools", config)
    do.run_command(index_cmd(bcftools, in_file))
    return in_file + ".tbi"

def rename_sample(in_file, sample_name, out_dir, config):
    """Replace the single sample name in a VCF header, then index.

    Pipelines write a placeholder sample name, so the sample column is renamed
    to match the pedigree identifier derived from the file name.
    """
    out_file = os.path.join(utils.safe_makedir(out_dir), "%s.vcf.gz" % sample_name)
    if not utils.file_exists(out_file):
        bcftools = config_utils.get_program("bcftools", config)
        with file_transaction(config, out_file) as tx_out_file:
            samples_file = "%s-samples.txt" % utils.splitext_plus(tx_out_file)[0]
            with open(samples_file, "w") as out_handle:
                out_handle.write(sample_name + "\n")
            do.run_command(reheader_cmd(bcftools, in_file, samples_file, tx_out_file))
    index_vcf(out_file, config)
    return out_file

def merge_vcfs(in_files, out_file, config):
    """Combine single sample VCFs into a multi-sample VCF and index it.
    """
    if not in_files:
        raise ValueError("No VCF files to merge into %s" % out_file)
    if not utils.file_exists(out_file):
        _check_samples_nodups(in_files)
        bcftools = config_utils.get_program("bcftools", config)
        cores = config_utils.get_num_cores("bcftools", config)
        with file_transaction(config, out_file) as tx_out_file:
            do.run_command(merge_cmd(bcftools, in_files, tx_out_file, cores))
    else:
        logger.info("Using existing merged VCF %s" % out_file)
    index_vcf(out_file, config)
    return out_file

def _check_samples_nodups(fnames):
    """Ensure a set of input VCFs do not have duplicate samples.
    """
    counts = defaultdict(int)
    for f in fnames:
        for s in get_samples(f):
            counts[s] += 1
    duplicates = [s for s, c in counts.items() if c > 1]
    if duplicates:
        raise ValueError("Duplicate samples found in inputs %s: %s" % (duplicates, fnames))

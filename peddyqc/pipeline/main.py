"""Main entry point for the peddy QC run.

Runs the steps strictly in order, stopping at the first failure:
download VCFs, write the pedigree, rename VCF samples, merge, run peddy,
lay out the outputs for MultiQC and upload them.
"""
import argparse
import os
import shutil

from peddyqc import log, upload, utils
from peddyqc.distributed import objectstore
from peddyqc.log import logger, DEFAULT_LOG_DIR
from peddyqc.pipeline import config_utils
from peddyqc.qc import multiqc
from peddyqc.variation import peddy, pedigree, vcfutils

WORK_SUBDIR = "peddy_qc"

def run_main(project, config_file=None, workdir=None):
    """Run peddy QC on the VCFs of a project, handling command line options.
    """
    # Set environment to standard to use periods for decimals and avoid localization
    locale_to_use = utils.get_locale()
    os.environ["LC_ALL"] = locale_to_use
    os.environ["LANG"] = locale_to_use
    config, config_file = config_utils.load_system_config(config_file)
    workdir = utils.safe_makedir(os.path.abspath(workdir or os.getcwd()))
    if os.path.isdir(project):
        project = os.path.abspath(project)
    if config.get("log_dir", None) is None:
        config["log_dir"] = os.path.join(workdir, DEFAULT_LOG_DIR)
    handler = log.setup_local_logging(config)
    try:
        logger.info("System YAML configuration: %s." %
                    (os.path.abspath(config_file) if config_file else "defaults"))
        with utils.chdir(workdir):
            return run_qc(project, workdir, config)
    finally:
        handler.pop_thread()
        handler.close()

def run_qc(project, work_dir, config):
    """Produce and upload peddy QC outputs for a project.

    Intermediate files live in a per-project directory under work_dir, removed
    at the start so nothing from an earlier run is reused. Returns the uploaded
    locations.
    """
    _check_programs(project, config)
    name = objectstore.project_name(project)
    project_dir = _fresh_project_dir(work_dir, name)
    vcf_files = objectstore.download_vcfs(project, os.path.join(project_dir, "inputs"), config)
    vcf_records = pedigree.build_records(vcf_files, config)
    records = [rec for _, rec in vcf_records]
    fam_file = pedigree.write_fam_file(records, os.path.join(project_dir, "%s.fam" % name), config)
    renamed = [vcfutils.rename_sample(vcf_file, rec.sample_id,
                                      os.path.join(project_dir, "renamed"), config)
               for vcf_file, rec in vcf_records]
    merged = vcfutils.merge_vcfs(renamed, os.path.join(project_dir, "%s.merged.vcf.gz" % name),
                                 config)
    pedigree.check_vcf_samples(records, merged)
    peddy_files = peddy.run_peddy(merged, fam_file, os.path.join(project_dir, "peddy"),
                                  "ped.%s" % name, config)
    out_dir = os.path.join(project_dir, "out")
    placed = multiqc.place_outputs(peddy_files, out_dir)
    if not placed["primary"]:
        raise ValueError("peddy did not produce any of the MultiQC inputs: %s" %
                         list(multiqc.PRIMARY_EXTENSIONS))
    uploaded = upload.from_outputs(out_dir, project, config)
    logger.info("peddy QC finished for %s: %s samples" % (project, len(records)))
    return uploaded

def _fresh_project_dir(work_dir, name):
    project_dir = os.path.join(work_dir, WORK_SUBDIR, name)
    if os.path.exists(project_dir):
        logger.info("Removing previous run files in %s" % project_dir)
        shutil.rmtree(project_dir)
    return utils.safe_makedir(project_dir)

def _check_programs(project, config):
    """Fail before any work when a required external program is missing.
    """
    programs = ["bcftools", "peddy"]
    if (not objectstore.is_local(project)
          or upload.get_upload_config(project, config)["method"] == "dnanexus"):
        programs.append("dx")
    missing = [p for p in programs if not config_utils.program_installed(p, config)]
    if missing:
        raise config_utils.CmdNotFound("Required programs not found: %s" % ", ".join(missing))

def parse_cl_args(in_args):
    """Parse input commandline arguments.
    """
    description = ("Add peddy sex and relatedness checks to a sequencing run, "
                   "laying out results for MultiQC.")
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("project_for_multiqc",
                        help=("Project holding the run's VCFs under output/: a DNAnexus "
                              "project (optionally prefixed with dx:) or a local directory"))
    parser.add_argument("--config", dest="config_file",
                        help=("YAML configuration file with program and upload settings "
                              "(optional, defaults to peddy_qc_system.yaml if present)"))
    parser.add_argument("--workdir", default=os.getcwd(),
                        help="Directory to process in. Defaults to current working directory")
    args = parser.parse_args(in_args)
    return {"project": args.project_for_multiqc,
            "config_file": args.config_file,
            "workdir": args.workdir}

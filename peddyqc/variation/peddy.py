"""
correspondence checking with peddy (https://github.com/brentp/peddy)
"""
import os
import shutil

from peddyqc import utils
from peddyqc.distributed.transaction import tx_tmpdir
from peddyqc.log import logger
from peddyqc.pipeline import config_utils
from peddyqc.provenance import do
from peddyqc.provenance.do import Command


PEDDY_OUT_EXTENSIONS = [".peddy.ped", ".het_check.csv", ".ped_check.csv", ".sex_check.csv",
                        ".html", ".background_pca.json", ".pca_check.png",
                        ".ped_check.png", ".sex_check.png", ".het_check.png",
                        ".ped_check.rel-difference.csv"]
DEFAULT_CORES = 4

def peddy_cmd(peddy, vcf_file, ped_file, prefix, cores=DEFAULT_CORES, genome_build=None):
    sites = ["--sites", "hg38"] if genome_build == "hg38" else []
    return Command([peddy, "-p", str(cores)] + sites + ["--plot", "--prefix", prefix,
                                                        vcf_file, ped_file],
                   "Running peddy on %s against %s" % (os.path.basename(vcf_file),
                                                       os.path.basename(ped_file)),
                   [prefix + ".html", prefix + ".peddy.ped"])

def run_peddy(vcf_file, ped_file, out_dir, prefix, config):
    """Run peddy sex, relatedness and ancestry checks on a merged VCF.

    Returns the peddy output files present in `out_dir`.
    """
    peddy_dir = utils.safe_makedir(out_dir)
    peddy_prefix = os.path.join(peddy_dir, prefix)
    peddy_report = peddy_prefix + ".html"
    if not utils.file_exists(peddy_report):
        peddy = config_utils.get_program("peddy", config)
        cores = config_utils.get_num_cores("peddy", config, DEFAULT_CORES)
        with tx_tmpdir(config) as tx_dir:
            peddy_prefix_tx = os.path.join(tx_dir, prefix)
            cmd = peddy_cmd(peddy, os.path.abspath(vcf_file), os.path.abspath(ped_file),
                            peddy_prefix_tx, cores, config.get("genome_build"))
            # peddy reports sex and relatedness summaries on stdout
            do.run_command(cmd, env=utils.locale_env(), log_stdout=True)
            for ext in PEDDY_OUT_EXTENSIONS:
                if os.path.exists(peddy_prefix_tx + ext):
                    shutil.move(peddy_prefix_tx + ext, peddy_prefix + ext)
    else:
        logger.info("Using existing peddy report %s" % peddy_report)
    return expected_peddy_files(peddy_prefix)

def expected_peddy_files(peddy_prefix):
    out = [peddy_prefix + x for x in PEDDY_OUT_EXTENSIONS]
    return [x for x in out if os.path.exists(x)]

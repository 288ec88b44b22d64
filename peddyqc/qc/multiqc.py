"""Lay out peddy results for MultiQC.

MultiQC's peddy module reads four of the peddy outputs. Those go in the QC
directory MultiQC scans; plots, the HTML report and the other tables go to a
separate directory that is uploaded with the run but kept out of the report.
"""
import os
import shutil

from peddyqc import utils
from peddyqc.log import logger

PRIMARY_EXTENSIONS = (".peddy.ped", ".het_check.csv", ".ped_check.csv", ".sex_check.csv")
PRIMARY_DIR = "QC"
EXTRA_DIR = "peddy_extra"

def is_primary(fname):
    return os.path.basename(fname).endswith(PRIMARY_EXTENSIONS)

def partition_outputs(fnames):
    """Split output files into (primary, extra) lists.
    """
    extra, primary = utils.partition(is_primary, fnames, tolist=True)
    return primary, extra

def place_outputs(fnames, out_dir):
    """Move peddy outputs into the primary and extra output directories.
    """
    primary, extra = partition_outputs(fnames)
    out = {"primary": [], "extra": []}
    for key, to_move, subdir in [("primary", primary, PRIMARY_DIR), ("extra", extra, EXTRA_DIR)]:
        final_dir = utils.safe_makedir(os.path.join(out_dir, subdir))
        for fname in to_move:
            final_file = os.path.join(final_dir, os.path.basename(fname))
            if os.path.abspath(fname) != os.path.abspath(final_file):
                utils.remove_safe(final_file)
                shutil.move(fname, final_file)
            out[key].append(final_file)
    logger.info("Placed %s MultiQC inputs in %s and %s other files in %s" %
                (len(out["primary"]), os.path.join(out_dir, PRIMARY_DIR),
                 len(out["extra"]), os.path.join(out_dir, EXTRA_DIR)))
    return out

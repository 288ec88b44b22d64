"""Extract files from the output directory into local storage, keeping the layout.
"""
import os
import shutil

from peddyqc import utils
from peddyqc.log import logger
from peddyqc.upload import shared

def update_file(finfo, upload_config, config):
    """Update the file in local filesystem storage.
    """
    out_file = get_upload_path(finfo, upload_config)
    utils.safe_makedir(os.path.dirname(out_file))
    if not shared.up_to_date(out_file, finfo):
        logger.info("Storing in local filesystem: %s" % out_file)
        shutil.copy(finfo["path"], out_file)
    return out_file

def get_upload_path(finfo, upload_config):
    # skip if we have no directory to upload to
    if "dir" not in upload_config:
        raise ValueError("Expect `dir` in filesystem upload specification")
    return os.path.abspath(os.path.join(upload_config["dir"], upload_config.get("folder", ""),
                                        finfo["rel_path"]))

"""Handle extraction of final files from the output directory into storage.
"""
import datetime
import os

from peddyqc import utils
from peddyqc.distributed import objectstore
from peddyqc.log import logger
from peddyqc.upload import dnanexus, filesystem

_approaches = {"filesystem": filesystem,
               "dnanexus": dnanexus}

def get_upload_config(resource, config):
    """Upload specification, defaulting to the store the inputs came from.
    """
    upload_config = dict(config.get("upload") or {})
    if "method" not in upload_config:
        if objectstore.is_local(resource):
            upload_config["method"] = "filesystem"
            upload_config.setdefault("dir", resource)
        else:
            upload_config["method"] = "dnanexus"
    if upload_config["method"] not in _approaches:
        raise ValueError("Unexpected upload method %s, expected one of %s" %
                         (upload_config["method"], sorted(_approaches.keys())))
    upload_config.setdefault("project", resource)
    return upload_config

def _get_files(out_dir):
    """Each file in the output tree, with its path relative to the tree.
    """
    out = []
    for fname in utils.locate("*", out_dir):
        out.append({"path": fname,
                    "rel_path": os.path.relpath(fname, os.path.abspath(out_dir)),
                    "mtime": datetime.datetime.fromtimestamp(os.path.getmtime(fname))})
    return out

def from_outputs(out_dir, resource, config):
    """Upload the whole output tree, keeping its layout.
    """
    upload_config = get_upload_config(resource, config)
    approach = _approaches[upload_config["method"]]
    finfos = _get_files(out_dir)
    logger.info("Uploading %s files from %s with %s" % (len(finfos), out_dir,
                                                         upload_config["method"]))
    return [approach.update_file(finfo, upload_config, config) for finfo in finfos]

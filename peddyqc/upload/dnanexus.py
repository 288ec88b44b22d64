"""Upload output files into a DNAnexus project with the dx toolkit.
"""
from peddyqc.distributed.objectstore import DNAnexus
from peddyqc.log import logger
from peddyqc.pipeline import config_utils
from peddyqc.provenance import do

def get_upload_path(finfo, upload_config):
    folder = upload_config.get("folder", "").strip("/")
    parts = [x for x in [folder, finfo["rel_path"]] if x]
    return "%s:/%s" % (DNAnexus.parse_remote(upload_config["project"]), "/".join(parts))

def update_file(finfo, upload_config, config):
    """Upload a file to its path in the project, creating parent folders.
    """
    dx = config_utils.get_program("dx", config)
    remote = get_upload_path(finfo, upload_config)
    logger.info("Uploading to DNAnexus: %s" % remote)
    do.run([dx, "upload", "--brief", "--parents", "--path", remote, finfo["path"]],
           "Upload %s" % finfo["rel_path"], env=DNAnexus.auth_env(config))
    return remote

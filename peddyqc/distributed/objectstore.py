"""Retrieve input VCFs from the project store holding a sequencing run.

Projects live in DNAnexus and are fetched with the `dx` command line client.
A local directory laid out the same way (VCFs under `output/`) can stand in
for a project.
"""
import abc
import fnmatch
import glob
import json
import os
import shutil

import toolz as tz

from peddyqc import utils
from peddyqc.log import logger
from peddyqc.pipeline import config_utils
from peddyqc.provenance import do

VCF_PATTERNS = ("*vcf.gz", "*vcf.gz.tbi")
REMOTE_FOLDER = "output"
DEFAULT_AUTH_KEY_FILE = "/home/dnanexus/auth_key"


class StorageManager(metaclass=abc.ABCMeta):

    """The contract class for all the storage managers."""

    @abc.abstractmethod
    def check_resource(self, resource):
        """Check if the received resource can be processed by
        the current storage manager.
        """
        pass

    @abc.abstractmethod
    def parse_remote(self, resource):
        """Parse a resource to obtain the project it refers to."""
        pass

    @abc.abstractmethod
    def download(self, resource, pattern, input_dir, config):
        """Download files matching pattern from the resource."""
        pass


class LocalDirectory(StorageManager):

    """Runs stored in a local directory."""

    @classmethod
    def check_resource(cls, resource):
        return os.path.isdir(resource)

    @classmethod
    def parse_remote(cls, resource):
        return os.path.abspath(resource)

    @classmethod
    def download(cls, resource, pattern, input_dir, config):
        out = []
        for fname in sorted(glob.glob(os.path.join(cls.parse_remote(resource), REMOTE_FOLDER,
                                                   pattern))):
            out_file = os.path.join(input_dir, os.path.basename(fname))
            logger.info("Copying %s" % fname)
            shutil.copy(fname, out_file)
            out.append(out_file)
        return out


class DNAnexus(StorageManager):

    """Projects stored in DNAnexus, accessed with the dx toolkit."""

    @classmethod
    def check_resource(cls, resource):
        return resource.startswith("dx:") or not os.path.exists(resource)

    @classmethod
    def parse_remote(cls, resource):
        project = resource[len("dx:"):] if resource.startswith("dx:") else resource
        return project.rstrip(":")

    @classmethod
    def auth_env(cls, config):
        """Environment authenticating dx with the API key file, if one is available.

        The token is passed in DX_SECURITY_CONTEXT and never appears on the
        logged command line.
        """
        env = dict(os.environ)
        key_file = tz.get_in(["dnanexus", "auth_key_file"], config, DEFAULT_AUTH_KEY_FILE)
        if key_file and utils.file_exists(key_file):
            with open(key_file) as in_handle:
                token = in_handle.read().strip()
            env["DX_SECURITY_CONTEXT"] = json.dumps({"auth_token_type": "Bearer",
                                                     "auth_token": token})
        else:
            logger.info("No DNAnexus API key found at %s, using current dx login" % key_file)
        return env

    @classmethod
    def download(cls, resource, pattern, input_dir, config):
        dx = config_utils.get_program("dx", config)
        remote = "%s:%s/%s" % (cls.parse_remote(resource), REMOTE_FOLDER, pattern)
        with utils.chdir(input_dir):
            do.run([dx, "download", "-f", remote], "Download %s" % remote,
                   env=cls.auth_env(config))
        return [os.path.join(input_dir, f)
                for f in fnmatch.filter(sorted(os.listdir(input_dir)), pattern)]


def _get_storage_manager(resource):
    """Return a storage manager which can process this resource."""
    for manager in (LocalDirectory, DNAnexus):
        if manager.check_resource(resource):
            return manager()

    raise ValueError("Unexpected object store %(resource)s" %
                     {"resource": resource})

def is_local(resource):
    return isinstance(_get_storage_manager(resource), LocalDirectory)

def project_name(resource):
    """Short name for the project, used to name output files.
    """
    manager = _get_storage_manager(resource)
    name = os.path.basename(manager.parse_remote(resource).rstrip("/"))
    return name.replace(".", "_").replace(" ", "_") or "project"

def download_vcfs(resource, input_dir, config):
    """Retrieve the bgzipped VCFs and indexes of a project into input_dir.

    Any previous contents of input_dir are removed first, so only the files
    of this project are returned. Their `.tbi` indexes sit alongside.
    """
    manager = _get_storage_manager(resource)
    if os.path.exists(input_dir):
        logger.info("Clearing previous inputs in %s" % input_dir)
        shutil.rmtree(input_dir)
    utils.safe_makedir(input_dir)
    downloaded = []
    for pattern in VCF_PATTERNS:
        downloaded.extend(manager.download(resource, pattern, input_dir, config))
    vcf_files = [f for f in downloaded if f.endswith(".vcf.gz")]
    if not vcf_files:
        raise ValueError("No VCF files found in %s under %s/" % (resource, REMOTE_FOLDER))
    logger.info("Retrieved %s VCF files from %s" % (len(vcf_files), resource))
    return vcf_files

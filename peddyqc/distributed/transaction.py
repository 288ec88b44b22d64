"""Write outputs in a temporary directory, moving them into place when complete.

An interrupted bcftools or peddy run never leaves a partial file at the final
location, so a file found there is always finished.
"""
import contextlib
import os
import shutil
import tempfile

import toolz as tz

from peddyqc import utils

DEFAULT_TMP = "peddyqctx"
# index files written next to an output by the same command
INDEX_EXTS = {".vcf.gz": [".tbi", ".csi"]}


@contextlib.contextmanager
def tx_tmpdir(config=None, base_dir=None):
    """Temporary directory for running a command, removed afterwards.

    Lives under `resources: tmp: dir` when configured, otherwise under
    the current directory.
    """
    tmpdir_base = utils.get_abspath(_get_base_tmpdir(config, base_dir or os.getcwd()))
    utils.safe_makedir(tmpdir_base)
    tmp_dir = tempfile.mkdtemp(dir=tmpdir_base)
    try:
        yield tmp_dir
    finally:
        utils.remove_safe(tmp_dir)


def _get_base_tmpdir(config, fallback_base_dir):
    config_tmpdir = tz.get_in(("resources", "tmp", "dir"), config)
    return config_tmpdir or os.path.join(fallback_base_dir, DEFAULT_TMP)


@contextlib.contextmanager
def file_transaction(config, out_file):
    """Yield a temporary name for out_file, moved to out_file on success.
    """
    with tx_tmpdir(config) as tmp_dir:
        tx_file = os.path.join(tmp_dir, os.path.basename(out_file))
        yield tx_file
        if os.path.exists(tx_file):
            _move_with_indexes(tx_file, out_file)


def _move_with_indexes(tx_file, out_file):
    utils.safe_makedir(os.path.dirname(out_file))
    _move_file_with_sizecheck(tx_file, out_file)
    for ext, index_exts in INDEX_EXTS.items():
        if tx_file.endswith(ext):
            for index_ext in index_exts:
                if os.path.exists(tx_file + index_ext):
                    _move_file_with_sizecheck(tx_file + index_ext, out_file + index_ext)


def _move_file_with_sizecheck(tx_file, final_file):
    """Move a finished file into place, checking the size after transfer.

    A `.peddyqctmp` flag file sits next to the destination while moving, so a
    leftover flag marks an incomplete transfer.
    """
    flag_file = final_file + ".peddyqctmp"
    open(flag_file, "wb").close()
    want_size = utils.get_size(tx_file)
    shutil.move(tx_file, final_file)
    transfer_size = utils.get_size(final_file)
    if want_size != transfer_size:
        raise IOError("Incomplete move of %s to %s: %s of %s bytes" %
                      (tx_file, final_file, transfer_size, want_size))
    utils.remove_safe(flag_file)

import os

import pytest

from peddyqc import utils
from tests.unit.conftest import touch, write_vcf


@pytest.mark.parametrize(("fname", "expected"), [
    ("sample1_M_001.vcf.gz", ("sample1_M_001", ".vcf.gz")),
    ("run.fam", ("run", ".fam")),
    ("merged.vcf", ("merged", ".vcf")),
])
def test_splitext_plus(fname, expected):
    assert utils.splitext_plus(fname) == expected


def test_file_exists(tmpdir):
    empty = str(tmpdir.join("empty"))
    open(empty, "w").close()
    assert not utils.file_exists(empty)
    assert not utils.file_exists(str(tmpdir.join("missing")))
    assert not utils.file_exists(None)
    assert utils.file_exists(touch(str(tmpdir.join("full"))))


def test_sort_filenames_ignores_directories():
    fnames = ["/z/a_M_001.vcf.gz", "/a/c_F_001.vcf.gz", "b_001.vcf.gz"]
    assert utils.sort_filenames(fnames) == ["/z/a_M_001.vcf.gz", "b_001.vcf.gz",
                                            "/a/c_F_001.vcf.gz"]


def test_partition():
    odd, even = utils.partition(lambda x: x % 2 == 0, range(6), tolist=True)
    assert odd == [1, 3, 5]
    assert even == [0, 2, 4]


def test_locate(tmpdir):
    touch(str(tmpdir.mkdir("a").join("x.csv")))
    touch(str(tmpdir.mkdir("b").join("y.png")))
    found = sorted(utils.locate("*.csv", str(tmpdir)))
    assert found == [str(tmpdir.join("a", "x.csv"))]


def test_chdir_restores(tmpdir):
    cur_dir = os.getcwd()
    with utils.chdir(str(tmpdir.join("new"))):
        assert os.getcwd() == str(tmpdir.join("new"))
    assert os.getcwd() == cur_dir


def test_open_gzipsafe(tmpdir):
    vcf_file = write_vcf(str(tmpdir.join("in.vcf.gz")), ["s1"])
    with utils.open_gzipsafe(vcf_file) as in_handle:
        assert in_handle.readline().startswith("##fileformat")


def test_locale_env(mocker):
    mocker.patch("peddyqc.utils.get_locale", return_value="en_US.utf8")
    env = utils.locale_env({"PATH": "/bin"})
    assert env == {"PATH": "/bin", "LC_ALL": "en_US.utf8", "LANG": "en_US.utf8"}


@pytest.mark.parametrize(("locales", "expected"), [
    ("POSIX\nC.UTF-8\nen_US.utf8\n", "C.UTF-8"),
    ("POSIX\nde_DE.utf8\n", "de_DE.utf8"),
    ("POSIX\n", "C.UTF-8"),
])
def test_get_locale(mocker, locales, expected):
    mocker.patch("peddyqc.utils.subprocess.check_output", return_value=locales.encode())
    assert utils.get_locale() == expected

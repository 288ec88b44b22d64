import os

import pytest

from peddyqc.pipeline import config_utils, main
from peddyqc.variation import pedigree, vcfutils
from tests.unit.conftest import touch, write_vcf


@pytest.fixture
def local_project(tmpdir):
    project = tmpdir.mkdir("run1")
    output = project.mkdir("output")
    for name in ["sample2_F_001.vcf.gz", "sample1_M_001.vcf.gz", "sample3_001.vcf.gz"]:
        write_vcf(str(output.join(name)), ["1"])
        touch(str(output.join(name + ".tbi")))
    yield str(project)


def test_parse_cl_args():
    kwargs = main.parse_cl_args(["002_200101_run", "--config", "system.yaml",
                                 "--workdir", "/work"])
    assert kwargs == {"project": "002_200101_run", "config_file": "system.yaml",
                      "workdir": "/work"}


def test_parse_cl_args_requires_project():
    with pytest.raises(SystemExit):
        main.parse_cl_args([])


def test_run_qc(tmpdir, config, fake_tools, local_project):
    work_dir = str(tmpdir.mkdir("work"))
    with tmpdir.as_cwd():
        uploaded = main.run_qc(local_project, work_dir, config)
    project_dir = os.path.join(work_dir, main.WORK_SUBDIR, "run1")
    assert fake_tools.subcommands() == ["reheader", "index"] * 3 + ["merge", "index", "-p"]

    records = pedigree.read_fam_file(os.path.join(project_dir, "run1.fam"))
    assert [(r.family_id, r.sample_id, r.sex) for r in records] == [
        ("FAM1", "sample1", 1), ("FAM2", "sample2", 2), ("FAM3", "sample3", 0)]
    merged = os.path.join(project_dir, "run1.merged.vcf.gz")
    assert vcfutils.get_samples(merged) == ["sample1", "sample2", "sample3"]

    peddy_cmd = fake_tools.commands[-1]
    assert peddy_cmd.args[-2:] == [merged, os.path.join(project_dir, "run1.fam")]
    assert os.path.basename(peddy_cmd.args[peddy_cmd.args.index("--prefix") + 1]) == "ped.run1"

    qc_dir = os.path.join(local_project, "QC")
    assert sorted(os.listdir(qc_dir)) == ["ped.run1.het_check.csv", "ped.run1.ped_check.csv",
                                          "ped.run1.peddy.ped", "ped.run1.sex_check.csv"]
    assert "ped.run1.html" in os.listdir(os.path.join(local_project, "peddy_extra"))
    assert len(uploaded) == len(os.listdir(qc_dir)) + len(
        os.listdir(os.path.join(local_project, "peddy_extra")))


def test_run_qc_stops_at_first_failure(tmpdir, config, fake_tools, local_project, mocker):
    mocker.patch("peddyqc.variation.vcfutils.merge_vcfs", side_effect=IOError("merge failed"))
    run_peddy = mocker.patch("peddyqc.variation.peddy.run_peddy")
    upload = mocker.patch("peddyqc.upload.from_outputs")
    with pytest.raises(IOError):
        main.run_qc(local_project, str(tmpdir.mkdir("work")), config)
    assert not run_peddy.called
    assert not upload.called


def test_run_main_logs_to_workdir(tmpdir, fake_tools, local_project):
    work_dir = str(tmpdir.join("work"))
    config_file = str(tmpdir.join("system.yaml"))
    with open(config_file, "w") as out_handle:
        out_handle.write("resources:\n  tmp:\n    dir: %s\n" % tmpdir.join("tx"))
    main.run_main(local_project, config_file, work_dir)
    log_dir = os.path.join(work_dir, "log")
    assert sorted(os.listdir(log_dir)) == ["peddy-qc-commands.log", "peddy-qc-debug.log",
                                           "peddy-qc.log"]
    with open(os.path.join(log_dir, "peddy-qc.log")) as in_handle:
        assert "peddy QC finished" in in_handle.read()


def test_run_qc_requires_programs(tmpdir, config, local_project, mocker):
    def _get_program(name, config, default=None):
        if name == "peddy":
            raise config_utils.CmdNotFound(name)
        return name
    mocker.patch("peddyqc.pipeline.config_utils.get_program", side_effect=_get_program)
    download = mocker.patch("peddyqc.distributed.objectstore.download_vcfs")
    with pytest.raises(config_utils.CmdNotFound, match="peddy"):
        main.run_qc(local_project, str(tmpdir.mkdir("work")), config)
    assert not download.called


def _make_project(base_dir, name, samples):
    output = base_dir.mkdir(name).mkdir("output")
    for fname, vcf_sample in samples:
        write_vcf(str(output.join(fname)), [vcf_sample])
        touch(str(output.join(fname + ".tbi")))
    return str(base_dir.join(name))


def _merged_samples(work_dir, name):
    return vcfutils.get_samples(os.path.join(work_dir, main.WORK_SUBDIR, name,
                                             "%s.merged.vcf.gz" % name))


def test_run_qc_projects_share_work_dir(tmpdir, config, fake_tools):
    work_dir = str(tmpdir.mkdir("work"))
    run_a = _make_project(tmpdir, "runA", [("s1_M_001.vcf.gz", "fromA"),
                                           ("s2_F_001.vcf.gz", "fromA")])
    run_b = _make_project(tmpdir, "runB", [("s9_F_001.vcf.gz", "fromB")])
    main.run_qc(run_a, work_dir, config)
    main.run_qc(run_b, work_dir, config)

    records = pedigree.read_fam_file(os.path.join(work_dir, main.WORK_SUBDIR, "runB",
                                                  "runB.fam"))
    assert [r.sample_id for r in records] == ["s9"]
    assert _merged_samples(work_dir, "runB") == ["s9"]
    assert _merged_samples(work_dir, "runA") == ["s1", "s2"]
    assert sorted(os.listdir(os.path.join(run_b, "QC"))) == [
        "ped.runB.het_check.csv", "ped.runB.ped_check.csv",
        "ped.runB.peddy.ped", "ped.runB.sex_check.csv"]


def test_run_qc_rerun_uses_current_inputs(tmpdir, config, fake_tools):
    work_dir = str(tmpdir.mkdir("work"))
    project = _make_project(tmpdir, "run1", [("s1_M_001.vcf.gz", "x"),
                                             ("s2_F_001.vcf.gz", "x")])
    main.run_qc(project, work_dir, config)
    assert _merged_samples(work_dir, "run1") == ["s1", "s2"]

    os.remove(os.path.join(project, "output", "s2_F_001.vcf.gz"))
    os.remove(os.path.join(project, "output", "s2_F_001.vcf.gz.tbi"))
    del fake_tools.commands[:]
    main.run_qc(project, work_dir, config)
    assert _merged_samples(work_dir, "run1") == ["s1"]
    assert fake_tools.subcommands() == ["reheader", "index", "merge", "index", "-p"]
    inputs = os.path.join(work_dir, main.WORK_SUBDIR, "run1", "inputs")
    assert sorted(os.listdir(inputs)) == ["s1_M_001.vcf.gz", "s1_M_001.vcf.gz.tbi"]

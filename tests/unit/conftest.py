import gzip
import os

import pytest

from peddyqc.variation import peddy, vcfutils


VCF_HEADER = ("##fileformat=VCFv4.2\n"
              "##contig=<ID=1,length=249250621>\n"
              "##FORMAT=<ID=GT,Number=1,Type=String,Description=\"Genotype\">\n")


def write_vcf(fname, samples):
    """Write a minimal bgzip-compatible VCF with the given samples."""
    with gzip.open(fname, "wt") as out_handle:
        out_handle.write(VCF_HEADER)
        out_handle.write("\t".join(["#CHROM", "POS", "ID", "REF", "ALT", "QUAL",
                                    "FILTER", "INFO", "FORMAT"] + list(samples)) + "\n")
        out_handle.write("\t".join(["1", "10000", ".", "A", "G", "50", "PASS", ".", "GT"] +
                                   ["0/1"] * len(samples)) + "\n")
    return fname


def touch(fname, content="x"):
    with open(fname, "w") as out_handle:
        out_handle.write(content)
    return fname


class FakeTools(object):
    """Stand in for bcftools and peddy, producing the outputs each command declares.

    Records every command it is asked to run.
    """
    def __init__(self):
        self.commands = []
        self.stdout_logged = []

    def __call__(self, command, env=None, log_stdout=False):
        self.commands.append(command)
        self.stdout_logged.append(log_stdout)
        args = command.args
        subcmd = args[1]
        if subcmd == "reheader":
            with open(args[args.index("-s") + 1]) as in_handle:
                samples = [x.strip() for x in in_handle if x.strip()]
            write_vcf(args[args.index("-o") + 1], samples)
        elif subcmd == "index":
            touch(args[-1] + ".tbi")
        elif subcmd == "merge":
            in_files = args[args.index("-o") + 2:]
            samples = []
            for in_file in in_files:
                samples.extend(vcfutils.get_samples(in_file))
            write_vcf(args[args.index("-o") + 1], samples)
        elif subcmd == "-p":
            prefix = args[args.index("--prefix") + 1]
            for ext in peddy.PEDDY_OUT_EXTENSIONS:
                touch(prefix + ext)
        else:
            raise ValueError("Unexpected command %s" % args)
        return command.outputs

    def subcommands(self):
        return [c.args[1] for c in self.commands]


@pytest.fixture
def config(tmpdir):
    return {"resources": {"tmp": {"dir": str(tmpdir.join("tx"))}}}


@pytest.fixture
def fake_tools(mocker):
    tools = FakeTools()
    mocker.patch("peddyqc.provenance.do.run_command", side_effect=tools)
    mocker.patch("peddyqc.pipeline.config_utils.get_program",
                 side_effect=lambda name, config, default=None: name)
    yield tools

#!/usr/bin/env python -Es
"""Add peddy QC to a sequencing run for display in MultiQC.

Downloads the run's per-sample VCFs, builds a pedigree file from the sex
declared in each file name, merges the VCFs with bcftools and runs peddy to
check declared against predicted sex and to find duplicate or related
samples. Results are laid out for MultiQC and uploaded back to the project.

Usage:
  peddy_qc.py <project_for_multiqc> [--config <YAML file>] [--workdir <dir>]
"""
import sys

from peddyqc.pipeline.main import run_main, parse_cl_args

def main(**kwargs):
    run_main(**kwargs)

if __name__ == "__main__":
    kwargs = parse_cl_args(sys.argv[1:])
    main(**kwargs)

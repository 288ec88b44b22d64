"""High level code for driving the peddy QC run.

  - main.py: Command line handling and ordering of the run steps.
  - config_utils.py: Loading of the YAML system configuration and
    lookup of external programs.
"""

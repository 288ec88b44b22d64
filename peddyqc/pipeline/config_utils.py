"""Loads configurations from .yaml files and expands environment variables.
"""
import os
import sys

import toolz as tz
import yaml


DEFAULT_CONFIG_FILE = "peddy_qc_system.yaml"

class CmdNotFound(Exception):
    pass

# ## Retrieval functions

def load_system_config(config_file=None, allow_missing=True):
    """Load peddy_qc_system.yaml configuration file, handling standard defaults.

    Without an explicit file, looks for peddy_qc_system.yaml in the current
    directory. A missing default file gives an empty configuration; a missing
    explicitly requested file is an error.
    """
    if config_file is None:
        config_file = DEFAULT_CONFIG_FILE
        if not os.path.exists(config_file) and allow_missing:
            config_file = None
    if config_file and not os.path.exists(config_file):
        raise ValueError("Could not find input system configuration file %s" % config_file)
    config = load_config(config_file) if config_file else _normalize_config({})
    config["peddy_qc_system"] = os.path.abspath(config_file) if config_file else None
    return config, config_file

def load_config(config_file):
    """Load YAML config file, replacing environmental variables.
    """
    with open(config_file) as in_handle:
        config = yaml.safe_load(in_handle) or {}
    config = _expand_paths(config)
    return _normalize_config(config)

def _normalize_config(config):
    if 'resources' not in config:
        config['resources'] = {}
    # lowercase resource names, the preferred way to specify, for back-compatibility
    newr = {}
    for k, v in config["resources"].items():
        if k.lower() != k:
            newr[k.lower()] = v
    config["resources"].update(newr)
    return config

def _expand_paths(config):
    for field, setting in config.items():
        if isinstance(config[field], dict):
            config[field] = _expand_paths(config[field])
        else:
            config[field] = expand_path(setting)
    return config

def expand_path(path):
    """ Combines os.path.expandvars with replacing ~ with $HOME.
    """
    try:
        return os.path.expandvars(path.replace("~", "$HOME"))
    except AttributeError:
        return path

def get_resources(name, config):
    """Retrieve resources for a program, pulling from multiple config sources.
    """
    return tz.get_in(["resources", name], config,
                     tz.get_in(["resources", "default"], config, {}))

def get_num_cores(name, config, default=1):
    """Number of cores to pass to a multi-threaded program.
    """
    resources = get_resources(name, config)
    cores = resources.get("cores", default) if isinstance(resources, dict) else default
    return int(cores)

def get_program(name, config, default=None):
    """Retrieve the commandline of a program from the configuration.

    Programs are specified in `resources` either as a string or with a
    `cmd` key, falling back to the program name. The result is checked
    next to the running interpreter, as given and then on the PATH.
    """
    pconfig = tz.get_in(["resources", name], config, None)
    return _get_program_cmd(name, pconfig, config, default)

def program_installed(program, config):
    try:
        get_program(program, config)
        return True
    except CmdNotFound:
        return False

def _get_check_program_cmd(fn):
    def wrap(name, pconfig, config, default):
        is_ok = lambda f: os.path.isfile(f) and os.access(f, os.X_OK)
        # support bioconda installed programs
        if is_ok(os.path.join(os.path.dirname(sys.executable), name)):
            return (os.path.join(os.path.dirname(sys.executable), name))
        program = expand_path(fn(name, pconfig, config, default))
        if is_ok(program):
            return program
        # search the PATH now
        for adir in os.environ['PATH'].split(":"):
            if is_ok(os.path.join(adir, program)):
                return os.path.join(adir, program)
        raise CmdNotFound(" ".join(map(repr, (fn.__name__, name, pconfig, default))))
    return wrap

@_get_check_program_cmd
def _get_program_cmd(name, pconfig, config, default):
    """Retrieve commandline of a program.
    """
    if pconfig is None:
        return default or name
    elif isinstance(pconfig, str):
        return pconfig
    elif "cmd" in pconfig:
        return pconfig["cmd"]
    elif default is not None:
        return default
    else:
        return name

"""Loading of prototype declarations from a prototype directory.

Two kinds of file are understood:

  * ``*.py`` files are executed once, until SharedPrototypes.reset() is
    called, no matter how many mothers load them. They typically declare
    prototypes at class level (``ObjectMother.define_user(...)``) or define
    ObjectMother subclasses. If a file defines a ``declare_prototypes(mother)``
    function it is called for every mother that loads the directory.

  * ``*.yaml`` / ``*.yml`` files contain declarative prototypes that are added
    to the registry of the mother loading them::

        prototypes:
          - name: wilma
            kind: user
            attributes:
              name: wilma
"""
import hashlib
import importlib.util
import os
import sys
from pathlib import Path

import yaml

from objectmother.core.config import ObjectMotherConfig
from objectmother.core.exceptions import InvalidFileFormatError
from objectmother.core.log import log

PROTOTYPE_HOOK = 'declare_prototypes'
YAML_SUFFIXES = ('.yaml', '.yml')
# Python prototype files already executed, keyed by absolute path.
LOADED_MODULES = {}


def dir_exists(path):
    """ Returns path if it is an existing directory otherwise None. """
    if path and os.path.isdir(path):
        return path

    return None


def resolve_prototype_dir(explicit=None):
    """
    Decide which directory prototypes are loaded from.

    @param explicit: directory to use regardless of whether it exists.
    @return: the explicit directory, else the first of the configured default
             directories that exists, else None.
    """
    if explicit:
        return str(explicit)

    for path in ObjectMotherConfig.default_prototype_dirs:
        path = os.path.join(ObjectMotherConfig.project_root, path)
        if dir_exists(path):
            return path

    log.debug("no prototype directory found under %s",
              ObjectMotherConfig.project_root)
    return None


def _module_name(path):
    digest = hashlib.sha1(str(path).encode('utf-8')).hexdigest()[:12]
    return f"objectmother_prototypes_{path.stem}_{digest}"


def import_prototype_file(path):
    """
    Execute a Python prototype file unless it has already been executed in
    this process.

    @return: module object.
    """
    path = Path(path).resolve()
    if path in LOADED_MODULES:
        return LOADED_MODULES[path]

    name = _module_name(path)
    spec = importlib.util.spec_from_file_location(name, path)
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        log.exception("failed loading prototype file %s", path)
        del sys.modules[name]
        raise

    log.debug("loaded prototype file %s", path)
    LOADED_MODULES[path] = module
    return module


def read_prototype_yaml(path):
    """
    Read declarative prototypes from a yaml file.

    @return: list of dicts each with name, kind and attributes keys.
    """
    with open(path, encoding='utf-8') as fd:
        try:
            content = yaml.safe_load(fd)
        except yaml.YAMLError as exc:
            raise InvalidFileFormatError(
                f"prototype file {path} is not valid yaml: {exc}") from exc

    if content is None:
        return []

    if not isinstance(content, dict) or \
            not isinstance(content.get('prototypes', []), list):
        raise InvalidFileFormatError(
            f"prototype file {path} must contain a 'prototypes' list")

    prototypes = []
    for entry in content.get('prototypes', []):
        if not isinstance(entry, dict) or 'name' not in entry:
            raise InvalidFileFormatError(
                f"prototype entry {entry} in {path} has no name")

        attributes = entry.get('attributes') or {}
        if not isinstance(attributes, dict):
            raise InvalidFileFormatError(
                f"attributes of prototype '{entry['name']}' in {path} must "
                "be a mapping")

        prototypes.append({'name': entry['name'],
                           'kind': entry.get('kind', ''),
                           'attributes': attributes})

    return prototypes


def find_prototype_files(directory):
    return sorted(p for p in Path(directory).rglob('*')
                  if p.is_file() and
                  (p.suffix == '.py' or p.suffix in YAML_SUFFIXES))


def load_prototypes(directory, mother):
    """
    Load all prototype files found under directory into mother.

    @param directory: prototype directory. Nothing is done if it is None or
                      does not exist.
    @param mother: ObjectMother that yaml prototypes and prototype hooks
                   declare into.
    @return: list of files loaded.
    """
    if not dir_exists(directory):
        if directory:
            log.debug("prototype directory %s does not exist", directory)
        return []

    loaded = []
    for path in find_prototype_files(directory):
        if path.suffix == '.py':
            module = import_prototype_file(path)
            hook = getattr(module, PROTOTYPE_HOOK, None)
            if callable(hook):
                hook(mother)
        else:
            for proto in read_prototype_yaml(path):
                mother.declare(proto['name'],
                               entity_kind=proto['kind'],
                               attributes=proto['attributes'])

        loaded.append(path)

    log.debug("loaded %d prototype file(s) from %s", len(loaded), directory)
    return loaded

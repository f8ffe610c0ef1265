import abc
import copy
import os
from collections import UserDict
from dataclasses import dataclass

from objectmother.core.exceptions import (
    NameAlreadyRegisteredError,
)


@dataclass
class ConfigOpt:
    """ Basic information required to define a config option. """

    name: str
    description: str
    default_value: object
    value_type: type


class ConfigOptGroupBase(UserDict):
    """ Base class for defining groups of config options. """
    def __init__(self):
        super().__init__()
        self.opts = {}

    @property
    @abc.abstractmethod
    def name(self):
        """ OptGroup name """

    def __getattribute__(self, name):
        """ Ensure dict contains all registered options. """
        if name == 'data':
            return {_name: opt.default_value
                    for _name, opt in self.opts.items()}

        return super().__getattribute__(name)

    def add(self, opt):
        self.opts[opt.name] = opt


class PrototypeConfigOpts(ConfigOptGroupBase):
    """ Options controlling where prototypes come from and how they are
    produced. """
    def __init__(self):
        super().__init__()
        self.add(ConfigOpt(name='project_root',
                           description=('Directory that default prototype '
                                        'directories are resolved against. '
                                        'Defaults to the current working '
                                        'directory.'),
                           default_value=os.getcwd(), value_type=str))
        self.add(ConfigOpt(name='default_prototype_dirs',
                           description=('Directories, relative to '
                                        'project_root, searched in order '
                                        'for prototype files when no '
                                        'directory is given explicitly.'),
                           default_value=[os.path.join('tests',
                                                       'object_mother'),
                                          os.path.join('test',
                                                       'object_mother')],
                           value_type=list))
        self.add(ConfigOpt(name='identity_attribute',
                           description=('Name of the entity attribute '
                                        'holding its identity. Entities '
                                        'without it are never cached.'),
                           default_value='id', value_type=str))
        self.add(ConfigOpt(name='propagate_destroy_errors',
                           description=('Errors raised while destroying a '
                                        'cached entity during recreate are '
                                        'logged and ignored unless this is '
                                        'set to True.'),
                           default_value=False, value_type=bool))

    @property
    def name(self):
        return 'prototypes'


class LoggingConfigOpts(ConfigOptGroupBase):
    """ Group of logging options. """
    def __init__(self):
        super().__init__()
        self.add(ConfigOpt(name='debug_mode',
                           description='Set to True to enable debug logging '
                                       'to standard error',
                           default_value=False, value_type=bool))
        self.add(ConfigOpt(name='log_level',
                           description=('Level used by the objectmother '
                                        'logger when debug_mode is not '
                                        'set.'),
                           default_value='WARNING', value_type=str))

    @property
    def name(self):
        return 'logging'


class RegisteredOpts(UserDict):
    """ Registers config options. """
    def __init__(self, *optgroups):
        self.optsgroups = []
        data = {}
        for optgroup in optgroups:
            optgroup = optgroup()
            self.optsgroups.append(optgroup)
            a = [name.lower() for name in data]
            b = [name.lower() for name in optgroup]
            if set(a).intersection(b):
                raise NameAlreadyRegisteredError(
                    f"optgroup '{optgroup.name}' contains one or "
                    "more names that have already been registered")

            data.update(optgroup)

        super().__init__(data)

    def __setitem__(self, key, item):
        for group in self.optsgroups:
            if key in group.opts:
                item = group.opts[key].value_type(item)
                break
        else:
            raise KeyError(
                f"config option '{key}' not found in any optgroup")

        self.data[key] = item


class ConfigMeta(abc.ABCMeta):
    """ Metadata used to register config options. """
    REGISTERED = RegisteredOpts(PrototypeConfigOpts,
                                LoggingConfigOpts)
    CONFIG = copy.deepcopy(REGISTERED)

    def __getattr__(cls, key):
        if key in cls.CONFIG:
            return cls.CONFIG[key]

        raise KeyError(f"fetching unknown config '{key}'.")

    def __setattr__(cls, key, val):
        if key in cls.CONFIG:
            cls.CONFIG[key] = val
            return
        if key not in ['__abstractmethods__', '_abc_impl', 'CONFIG',
                       'REGISTERED']:
            raise KeyError(f"setting unknown config '{key}'.")

        super().__setattr__(key, val)


class ObjectMotherConfig(metaclass=ConfigMeta):
    """ The main registry of config options.

    Options are automatically registered on module load."""

    @classmethod
    def reset(cls):
        """ Reset all config options to their default values. """
        cls.CONFIG = copy.deepcopy(cls.REGISTERED)

    @classmethod
    def set(cls, **config_options):
        """
        Provides a way to set multiple config options at once.

        @param config_options: a dictionary of one or more config option to
                               set.
        """
        for k, v in config_options.items():
            setattr(cls, k, v)

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from objectmother.core.exceptions import UnexpectedParameterError
from objectmother.core.log import log

STRICT_SUFFIX = '!'
RECREATE_PREFIX = 'recreate_'


class FactoryVariant(Enum):
    """ The flavours of factory method generated for each prototype. """
    PLAIN = 'plain'
    STRICT = 'strict'
    RECREATE = 'recreate'


@dataclass(frozen=True)
class PrototypeDefinition:
    """ A named recipe for producing an entity. """

    name: str
    entity_kind: str = ''
    base_attributes: Optional[dict] = field(default=None, hash=False)
    creation_fn: Optional[Callable] = None

    @property
    def has_creation_fn(self):
        return self.creation_fn is not None

    @property
    def method_names(self):
        """
        Names of the factory methods generated for this prototype mapped to
        the variant each one implements.
        """
        names = {self.name: FactoryVariant.PLAIN,
                 f"{RECREATE_PREFIX}{self.name}": FactoryVariant.RECREATE}
        if not self.has_creation_fn:
            names[f"{self.name}{STRICT_SUFFIX}"] = FactoryVariant.STRICT

        return names


class PrototypeRegistry():
    """
    Holds prototype definitions along with the table of factory method names
    generated from them.
    """
    def __init__(self):
        self.definitions = {}
        self.methods = {}

    def __contains__(self, name):
        return name in self.definitions

    def __len__(self):
        return len(self.definitions)

    def __iter__(self):
        return iter(self.definitions.values())

    def names(self):
        return list(self.definitions)

    def get(self, name):
        return self.definitions[name]

    def declare(self, name, entity_kind=None, attributes=None,
                creation_fn=None):
        """
        Declare a named prototype. Declaring a name that already exists
        replaces the previous definition.

        @param name: name of the prototype, which is also the name of the
                     plain factory method.
        @param entity_kind: identifier of the type of entity produced.
        @param attributes: base attributes passed to create.
        @param creation_fn: callable that creates the entity itself. Cannot
                            be combined with attributes.
        @return: PrototypeDefinition
        """
        name = str(name)
        if not name.isidentifier():
            raise UnexpectedParameterError(
                f"prototype name '{name}' is not a valid identifier")

        if attributes is not None and creation_fn is not None:
            raise UnexpectedParameterError(
                f"prototype '{name}' given both attributes and a creation "
                "function")

        if creation_fn is not None and not callable(creation_fn):
            raise UnexpectedParameterError(
                f"creation function for prototype '{name}' is not callable")

        if creation_fn is None:
            attributes = dict(attributes or {})

        definition = PrototypeDefinition(name=name,
                                         entity_kind=entity_kind or '',
                                         base_attributes=attributes,
                                         creation_fn=creation_fn)
        if name in self.definitions:
            log.debug("prototype %s redeclared", name)
            for method_name in self.definitions[name].method_names:
                self.methods.pop(method_name, None)

        self.definitions[name] = definition
        for method_name, variant in definition.method_names.items():
            self.methods[method_name] = (variant, definition)

        log.debug("declared prototype %s (kind=%s)", name,
                  definition.entity_kind or None)
        return definition

    def lookup(self, method_name):
        """
        Find the generated factory method with the given name.

        @return: tuple of (FactoryVariant, PrototypeDefinition) or None.
        """
        return self.methods.get(method_name)

    def reset(self):
        self.definitions = {}
        self.methods = {}

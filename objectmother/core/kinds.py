"""Entity kind registry.

Prototypes refer to the type of object they produce by a lowercase,
underscored identifier such as ``user`` or ``blog_post``. The embedding
application registers its entity types here so that those identifiers can be
resolved to something that can actually be created.
"""
import importlib
import re

from objectmother.core.exceptions import (
    NameAlreadyRegisteredError,
    UnknownEntityKindError,
)
from objectmother.core.log import log


def classify(word):
    """
    Convert an underscored identifier into a class name e.g. blog_post
    becomes BlogPost.
    """
    return ''.join(segment[:1].upper() + segment[1:]
                   for segment in word.split('_'))


def underscore(class_name):
    """ The inverse of classify e.g. BlogPost becomes blog_post. """
    return re.sub(r'(?<!^)(?=[A-Z])', '_', class_name).lower()


class EntityKinds():
    """
    Registry of creatable entity types keyed by their class name.
    """
    def __init__(self):
        self.types = {}

    def __contains__(self, kind):
        try:
            self.resolve(kind)
        except UnknownEntityKindError:
            return False

        return True

    def __len__(self):
        return len(self.types)

    def register(self, entity_type=None, kind=None):
        """
        Register an entity type. Can also be used as a class decorator, with
        or without a kind argument.

        @param entity_type: class exposing create, create_or_raise, find_by_id
                            and destroy.
        @param kind: optional identifier for the type. Defaults to the
                     underscored class name.
        """
        if entity_type is None:
            def _register(_entity_type):
                return self.register(_entity_type, kind=kind)

            return _register

        key = classify(kind) if kind else entity_type.__name__
        existing = self.types.get(key)
        if existing is not None and existing is not entity_type:
            raise NameAlreadyRegisteredError(
                f"entity kind '{underscore(key)}' already registered as "
                f"{existing.__module__}.{existing.__qualname__}")

        log.debug("registering entity kind %s -> %s", underscore(key),
                  entity_type.__qualname__)
        self.types[key] = entity_type
        return entity_type

    @staticmethod
    def _import_type(path):
        mod_name, _, attr = path.partition(':')
        try:
            return getattr(importlib.import_module(mod_name), attr)
        except (ImportError, AttributeError) as exc:
            raise UnknownEntityKindError(
                f"unable to import entity kind '{path}'") from exc

    def resolve(self, kind):
        """
        Resolve a kind identifier to a registered type.

        Identifiers of the form package.module:ClassName are imported
        directly.

        @param kind: identifier e.g. user or blog_post.
        @return: the entity type.
        """
        if not kind:
            raise UnknownEntityKindError("no entity kind given")

        if ':' in kind:
            return self._import_type(kind)

        key = classify(kind)
        if key not in self.types:
            raise UnknownEntityKindError(
                f"unknown entity kind '{kind}' (looked for {key})")

        return self.types[key]

    def reset(self):
        self.types = {}


# Process-wide registry used when a mother is not given one of its own.
ENTITY_KINDS = EntityKinds()


def entity_kind(kind=None):
    """ Class decorator registering an entity type with ENTITY_KINDS. """
    def real_decorator(cls):
        return ENTITY_KINDS.register(cls, kind=kind)

    return real_decorator

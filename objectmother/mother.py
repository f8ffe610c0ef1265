import abc
import functools
import re
from collections.abc import Mapping

from objectmother.core.cache import IdentityCache
from objectmother.core.config import ObjectMotherConfig
from objectmother.core.exceptions import (
    UnexpectedParameterError,
    UnknownEntityKindError,
    UnknownOperationError,
)
from objectmother.core.factory import FactoryBase
from objectmother.core.kinds import ENTITY_KINDS
from objectmother.core.lifecycle import EntityLifecycle
from objectmother.core.loader import (
    LOADED_MODULES,
    load_prototypes,
    resolve_prototype_dir,
)
from objectmother.core.log import log
from objectmother.core.registry import (
    FactoryVariant,
    PrototypeRegistry,
    RECREATE_PREFIX,
    STRICT_SUFFIX,
)

DEFINE_PATTERN = re.compile(r'^define(?:_(\w+))?$')
CREATE_PATTERN = re.compile(r'^create_(\w+)(!?)$')
# attribute spelling of the ! suffix e.g. mother.wilma_or_raise()
STRICT_ALIAS = '_or_raise'
# attributes set on every mother by __init__
MOTHER_ATTRIBUTES = ('cache', 'kinds', 'registry', 'shared', '_prototype_dir')


class SharedPrototypes():
    """
    Process-wide prototype registry and identity cache.

    Class-level declarations (ObjectMother.define_user(...)) always land
    here and are visible to every mother. Mothers created with shared=True
    also declare into and cache against this state. Call reset() between
    tests that need isolation from it.
    """
    registry = PrototypeRegistry()
    cache = IdentityCache()

    @classmethod
    def declare(cls, name, entity_kind=None, attributes=None,
                creation_fn=None):
        _check_entity_kind(name, entity_kind, creation_fn)
        if str(name) in cls.registry:
            cls.cache.invalidate(str(name))

        return cls.registry.declare(name, entity_kind=entity_kind,
                                    attributes=attributes,
                                    creation_fn=creation_fn)

    @classmethod
    def reset(cls):
        """
        Forget all shared prototypes and cached ids. Python prototype files
        are forgotten too so that the next load runs them again and restores
        their class-level declarations.
        """
        cls.registry.reset()
        cls.cache.clear()
        LOADED_MODULES.clear()


def _check_entity_kind(name, entity_kind, creation_fn):
    if not entity_kind and creation_fn is None:
        raise UnknownEntityKindError(
            f"prototype '{name}' has attributes but no entity kind")


def _check_prototype_name(owner, name):
    """
    Ensure no factory method generated for a prototype called name would be
    hidden by an attribute of owner, an ObjectMother class.
    """
    name = str(name)
    if name.endswith(STRICT_ALIAS):
        raise UnexpectedParameterError(
            f"prototype name '{name}' must not end with '{STRICT_ALIAS}'")

    for method_name in (name, f"{RECREATE_PREFIX}{name}",
                        f"{name}{STRICT_ALIAS}"):
        if method_name in MOTHER_ATTRIBUTES or \
                any(method_name in vars(klass) for klass in owner.__mro__):
            raise UnexpectedParameterError(
                f"prototype name '{name}' clashes with "
                f"{owner.__name__}.{method_name}")


def _define(declare, kind, name, attributes=None, extra_attributes=None):
    """
    Common implementation of define and define_<kind> for both class-level
    and instance-level declarations.

    A callable in place of attributes is taken as the creation function.
    define(name) with nothing else returns a decorator that registers the
    decorated function as the creation function.
    """
    if callable(attributes):
        if extra_attributes:
            raise UnexpectedParameterError(
                f"prototype '{name}' given both attributes and a creation "
                "function")

        return declare(name, kind, creation_fn=attributes)

    if attributes is not None and not isinstance(attributes, Mapping):
        raise UnexpectedParameterError(
            f"attributes for prototype '{name}' must be a mapping, got "
            f"{type(attributes).__name__}")

    if not kind and attributes is None and not extra_attributes:
        def decorator(creation_fn):
            declare(name, kind, creation_fn=creation_fn)
            return creation_fn

        return decorator

    merged = dict(attributes or {})
    merged.update(extra_attributes or {})
    return declare(name, kind, attributes=merged)


class MotherMeta(abc.ABCMeta):
    """ Routes class-level define_<kind> calls to the shared registry. """

    def __getattr__(cls, name):
        match = DEFINE_PATTERN.match(name)
        if match is None:
            raise AttributeError(
                f"type object '{cls.__name__}' has no attribute '{name}'")

        def define(proto_name, attributes=None, /, **extra_attributes):
            _check_prototype_name(cls, proto_name)
            return _define(SharedPrototypes.declare, match.group(1),
                           proto_name, attributes, extra_attributes)

        return define


class ObjectMother(FactoryBase, metaclass=MotherMeta):
    """
    Factory for named test fixtures.

    Prototypes are declared with define_<kind>(name, attributes) or
    define(name, creation_fn), after which the following become available:

        mother.<name>()            find the cached entity or create one
        mother.<name>_or_raise()   same but creation failures are raised
                                   (also available as send('<name>!'))
        mother.recreate_<name>()   destroy any cached entity, create anew

    and for any registered entity kind:

        mother.create_<kind>()           always create a new entity
        mother.create_<kind>_or_raise()  same, raising on failure

    Default attributes for a kind can be provided by defining a
    <kind>_prototype method (or attribute) on a subclass.
    """

    def __init__(self, prototype_dir=None, kinds=None, shared=False):
        """
        @param prototype_dir: directory to load prototype files from.
                              Defaults to the first existing configured
                              default directory.
        @param kinds: EntityKinds used to resolve entity kinds. Defaults to
                      the process-wide registry.
        @param shared: declare into and cache against SharedPrototypes
                       rather than state private to this mother.
        """
        self._prototype_dir = None
        self.shared = shared
        self.kinds = kinds if kinds is not None else ENTITY_KINDS
        if shared:
            self.cache = SharedPrototypes.cache
            self.registry = SharedPrototypes.registry
        else:
            self.cache = IdentityCache()
            self.registry = PrototypeRegistry()

        self.set_prototype_dir(prototype_dir)

    # ------------------------------------------------------------------
    # Prototype directory

    @property
    def prototype_dir(self):
        return self._prototype_dir

    @prototype_dir.setter
    def prototype_dir(self, directory):
        self.set_prototype_dir(directory)

    def set_prototype_dir(self, directory=None):
        """
        Set the prototype directory to the given value or some default and
        load the prototypes found there if it changed.
        """
        previous = self._prototype_dir
        self._prototype_dir = resolve_prototype_dir(directory)
        if self._prototype_dir != previous:
            load_prototypes(self._prototype_dir, self)

        return self._prototype_dir

    # ------------------------------------------------------------------
    # Declarations

    def declare(self, name, entity_kind=None, attributes=None,
                creation_fn=None):
        """
        Declare a prototype on this mother. The entity kind must already be
        resolvable and can only be omitted when a creation function is given.
        Redeclaring a name drops its cached entity.
        """
        _check_prototype_name(type(self), name)
        if entity_kind:
            self.kinds.resolve(entity_kind)
        else:
            _check_entity_kind(name, entity_kind, creation_fn)

        if str(name) in self.registry:
            self.cache.invalidate(str(name))

        return self.registry.declare(name, entity_kind=entity_kind,
                                     attributes=attributes,
                                     creation_fn=creation_fn)

    def define_prototype(self, kind, name, attributes=None, /,
                         **extra_attributes):
        return _define(self.declare, kind, name, attributes,
                       extra_attributes)

    @property
    def prototypes(self):
        names = set(self.registry.names())
        names.update(SharedPrototypes.registry.names())
        return sorted(names)

    # ------------------------------------------------------------------
    # Caching

    @property
    def cached_ids(self):
        return self.cache

    def clear_cache(self):
        self.cache.clear()

    def reset(self):
        """ Forget all prototypes declared on and cached by this mother. """
        self.registry.reset()
        self.cache.clear()

    def cache_fetch(self, name, lifecycle):
        """
        Load a named prototype using its cached identity.

        @return: entity or None if nothing is cached or the cached entity no
                 longer exists.
        """
        identity = self.cache.get(name)
        if identity is None:
            log.debug("cache miss for %s", name)
            return None

        entity = lifecycle.find_by_id(identity)
        if entity is None:
            log.debug("cached %s (%s=%s) no longer exists", name,
                      ObjectMotherConfig.identity_attribute, identity)
            self.cache.invalidate(name)
            return None

        log.debug("cache hit for %s", name)
        return entity

    # ------------------------------------------------------------------
    # Creation

    def lifecycle(self, kind):
        return EntityLifecycle(kind, self.kinds.resolve(kind))

    def kind_defaults(self, kind):
        """
        Default attributes for an entity kind as provided by a
        <kind>_prototype method or attribute, or an empty dict.
        """
        attr = f"{kind}_prototype"
        if attr not in self.__dict__ and not hasattr(type(self), attr):
            return {}

        provider = getattr(self, attr)
        defaults = provider() if callable(provider) else provider
        return dict(defaults or {})

    def create_from_prototype(self, kind, overrides=None, creation_fn=None,
                              raise_errors=False):
        """
        Create a new entity of the given kind. The kind defaults are merged
        with overrides and either passed to creation_fn, whose result is
        returned, or to create.
        """
        lifecycle = self.lifecycle(kind)
        merged = self.kind_defaults(kind)
        merged.update(overrides or {})
        if creation_fn is not None:
            return creation_fn(merged)

        if raise_errors:
            return lifecycle.create_or_raise(merged)

        return lifecycle.create(merged)

    def find_or_create(self, definition, overrides=None, raise_errors=False):
        """
        Entry point for named attribute prototypes. The cached entity is
        returned if it still exists, regardless of overrides. Otherwise a new
        one is created from the prototype and cached.
        """
        lifecycle = self.lifecycle(definition.entity_kind)
        entity = self.cache_fetch(definition.name, lifecycle)
        if entity is not None:
            return entity

        attrs = dict(definition.base_attributes)
        attrs.update(overrides or {})
        entity = self.create_from_prototype(definition.entity_kind, attrs,
                                            raise_errors=raise_errors)
        return self.cache.store(definition.name, entity,
                                lifecycle.identity_of)

    def call_creation_fn(self, definition, /, *args, **kwargs):
        entity = definition.creation_fn(*args, **kwargs)
        return self.cache.store(definition.name, entity,
                                EntityLifecycle.identity_of)

    def _destroy(self, definition, identity):
        if not definition.entity_kind:
            log.debug("prototype %s has no entity kind, not destroying %s",
                      definition.name, identity)
            return

        lifecycle = self.lifecycle(definition.entity_kind)
        try:
            lifecycle.destroy(identity)
        except Exception as exc:
            if ObjectMotherConfig.propagate_destroy_errors:
                raise

            log.warning("failed to destroy %s %s while recreating %s: %s",
                        definition.entity_kind, identity, definition.name,
                        exc)

    def recreate(self, definition, /, *args, **kwargs):
        """
        Destroy and then recreate a named prototype. Use it to bypass the
        cache.
        """
        identity = self.cache.invalidate(definition.name)
        if identity is not None:
            self._destroy(definition, identity)

        if definition.has_creation_fn:
            return self.call_creation_fn(definition, *args, **kwargs)

        return self.find_or_create(definition,
                                   self._overrides(definition.name, *args,
                                                   **kwargs))

    # ------------------------------------------------------------------
    # Dispatch

    @staticmethod
    def _overrides(name, overrides=None, /, **attrs):
        if overrides is not None and not isinstance(overrides, Mapping):
            raise UnexpectedParameterError(
                f"overrides for '{name}' must be a mapping, got "
                f"{type(overrides).__name__}")

        merged = dict(overrides or {})
        merged.update(attrs)
        return merged

    def _bind_named(self, variant, definition):
        if variant is FactoryVariant.RECREATE:
            return functools.partial(self.recreate, definition)

        if definition.has_creation_fn:
            return functools.partial(self.call_creation_fn, definition)

        def factory(overrides=None, /, **attrs):
            return self.find_or_create(
                definition, self._overrides(definition.name, overrides,
                                            **attrs),
                raise_errors=variant is FactoryVariant.STRICT)

        return factory

    def _bind_create(self, kind, raise_errors):
        # creation_fn is taken by the factory itself so an entity attribute of
        # that name has to be passed in the overrides mapping.
        def factory(overrides=None, /, creation_fn=None, **attrs):
            if callable(overrides) and creation_fn is None:
                overrides, creation_fn = None, overrides

            return self.create_from_prototype(
                kind, self._overrides(f"create_{kind}", overrides, **attrs),
                creation_fn=creation_fn, raise_errors=raise_errors)

        return factory

    def _lookup(self, method_name):
        found = self.registry.lookup(method_name)
        if found is None and self.registry is not SharedPrototypes.registry:
            found = SharedPrototypes.registry.lookup(method_name)

        return found

    def resolve_method(self, name):
        """
        Resolve a factory method name. Names are tried against the generated
        prototype methods, then define(_<kind>), then create_<kind>(!).

        @return: callable or None if the name matches nothing.
        """
        if name.endswith(STRICT_ALIAS):
            name = name[:-len(STRICT_ALIAS)] + STRICT_SUFFIX

        found = self._lookup(name)
        if found is not None:
            return self._bind_named(*found)

        match = DEFINE_PATTERN.match(name)
        if match:
            return functools.partial(self.define_prototype, match.group(1))

        match = CREATE_PATTERN.match(name)
        if match:
            return self._bind_create(match.group(1),
                                     match.group(2) == STRICT_SUFFIX)

        return None

    def send(self, name, *args, **kwargs):
        """
        Call a factory method by name. This is the only way to reach names
        that aren't valid Python identifiers e.g. send('wilma!').
        """
        try:
            method = object.__getattribute__(self, name)
        except AttributeError:
            method = self.resolve_method(name)

        if method is None:
            raise UnknownOperationError(
                f"'{type(self).__name__}' object has no factory method "
                f"'{name}'")

        return method(*args, **kwargs)

    def __getattr__(self, name):
        if name.startswith('__') or 'registry' not in self.__dict__:
            raise AttributeError(name)

        method = self.resolve_method(name)
        if method is None:
            raise UnknownOperationError(
                f"'{type(self).__name__}' object has no factory method "
                f"'{name}'")

        return method

    def __dir__(self):
        names = set(super().__dir__())
        for proto in self.prototypes:
            found = self._lookup(proto)
            if found is None:
                continue

            for method_name in found[1].method_names:
                if method_name.endswith(STRICT_SUFFIX):
                    method_name = method_name[:-1] + STRICT_ALIAS

                names.add(method_name)

        return sorted(names)

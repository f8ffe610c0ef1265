import itertools
import os
import shutil
import tempfile
import unittest
from functools import wraps

from objectmother.core.config import ObjectMotherConfig
from objectmother.core.exceptions import CreationFailedError
from objectmother.core.kinds import EntityKinds
# disable for stestr otherwise output is much too verbose
from objectmother.core.log import logging, LoggingManager
from objectmother.mother import SharedPrototypes

TESTS_DIR = os.path.dirname(os.path.abspath(__file__))
FAKE_PROTOTYPES_DIR = os.path.join(TESTS_DIR, 'fake_prototypes')


class FakeEntity():
    """
    In-memory stand-in for a persisted entity type exposing the lifecycle
    operations objectmother expects.
    """
    rows = {}
    ids = itertools.count(1)
    reject = False

    def __init__(self, **attrs):
        self.id = None
        self.attrs = attrs

    def __repr__(self):
        return f"{type(self).__name__}(id={self.id}, {self.attrs})"

    @classmethod
    def reset(cls):
        cls.rows = {}
        cls.ids = itertools.count(1)
        cls.reject = False

    @classmethod
    def create(cls, attrs):
        if cls.reject:
            return None

        entity = cls(**attrs)
        entity.id = next(cls.ids)
        cls.rows[entity.id] = entity
        return entity

    @classmethod
    def create_or_raise(cls, attrs):
        entity = cls.create(attrs)
        if entity is None:
            raise CreationFailedError(f"{cls.__name__} rejected {attrs}")

        return entity

    @classmethod
    def find_by_id(cls, identity):
        return cls.rows.get(identity)

    @classmethod
    def destroy(cls, identity):
        cls.rows.pop(identity, None)


class User(FakeEntity):
    """ Fake user entity. """


class Rock(User):
    """ Fake rock entity. """


class BlogPost(FakeEntity):
    """ Fake entity with a multi-word kind. """


class Pebble():
    """ Entity type whose entities have no identity. """

    @classmethod
    def create(cls, attrs):
        return dict(attrs)

    @classmethod
    def find_by_id(cls, identity):
        return None

    @classmethod
    def destroy(cls, identity):
        pass


FAKE_ENTITY_TYPES = [User, Rock, BlogPost]


def create_prototype_dir(files_to_create):
    """
    Decorator helper to create any number of files with provided content
    within a temporary prototype directory. The path of the directory is
    passed to the test as its last argument.

    @param files_to_create: a dictionary of <filename>: <contents> pairs.
    """

    def create_files_inner1(f):
        @wraps(f)
        def create_files_inner2(*args, **kwargs):
            with tempfile.TemporaryDirectory() as dtmp:
                for path, content in files_to_create.items():
                    path = os.path.join(dtmp, path)
                    if not os.path.exists(os.path.dirname(path)):
                        os.makedirs(os.path.dirname(path))

                    with open(path, 'w', encoding='utf-8') as fd:
                        fd.write(content)

                return f(*args, dtmp, **kwargs)

        return create_files_inner2

    return create_files_inner1


class BaseTestCase(unittest.TestCase):
    """ Custom TestCase to be used by all tests. """
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.project_root = None
        self.logging_manager = None
        self.objectmother_config = {'debug_mode': False,
                                    'propagate_destroy_errors': False}

    def new_kinds(self):
        kinds = EntityKinds()
        for entity_type in FAKE_ENTITY_TYPES + [Pebble]:
            kinds.register(entity_type)

        return kinds

    def setUp(self):
        self.maxDiff = None  # pylint: disable=invalid-name
        # Always reset env globals
        ObjectMotherConfig.set(**self.objectmother_config)
        # Keep the default prototype dirs out of the way of the tests.
        self.project_root = tempfile.mkdtemp()
        ObjectMotherConfig.project_root = self.project_root
        SharedPrototypes.reset()
        for entity_type in FAKE_ENTITY_TYPES:
            entity_type.reset()

        self.kinds = self.new_kinds()
        self.logging_manager = LoggingManager()
        if os.environ.get('TESTS_LOG_LEVEL_DEBUG', 'no') == 'yes':
            ObjectMotherConfig.debug_mode = True
            self.logging_manager.start()
        else:
            self.logging_manager.start(level=logging.WARNING)

    def tearDown(self):
        self.logging_manager.stop()
        SharedPrototypes.reset()
        ObjectMotherConfig.reset()
        shutil.rmtree(self.project_root)

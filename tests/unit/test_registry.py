from objectmother.core.exceptions import UnexpectedParameterError
from objectmother.core.registry import (
    FactoryVariant,
    PrototypeRegistry,
)

from . import utils


class TestPrototypeRegistry(utils.BaseTestCase):
    """ Unit tests for the prototype registry. """

    def test_declare_attributes(self):
        registry = PrototypeRegistry()
        definition = registry.declare('wilma', 'user', {'name': 'wilma'})
        self.assertEqual(definition.base_attributes, {'name': 'wilma'})
        self.assertEqual(definition.entity_kind, 'user')
        self.assertFalse(definition.has_creation_fn)
        self.assertIn('wilma', registry)
        self.assertEqual(registry.names(), ['wilma'])
        self.assertEqual(registry.lookup('wilma'),
                         (FactoryVariant.PLAIN, definition))
        self.assertEqual(registry.lookup('wilma!'),
                         (FactoryVariant.STRICT, definition))
        self.assertEqual(registry.lookup('recreate_wilma'),
                         (FactoryVariant.RECREATE, definition))
        self.assertIsNone(registry.lookup('fred'))

    def test_declare_copies_attributes(self):
        attrs = {'name': 'wilma'}
        registry = PrototypeRegistry()
        registry.declare('wilma', 'user', attrs)
        attrs['name'] = 'fred'
        self.assertEqual(registry.get('wilma').base_attributes,
                         {'name': 'wilma'})

    def test_declare_no_attributes(self):
        registry = PrototypeRegistry()
        self.assertEqual(registry.declare('bobo', 'user').base_attributes, {})

    def test_declare_creation_fn(self):
        registry = PrototypeRegistry()
        definition = registry.declare('barney', creation_fn=str.upper)
        self.assertTrue(definition.has_creation_fn)
        self.assertIsNone(definition.base_attributes)
        self.assertEqual(set(definition.method_names),
                         {'barney', 'recreate_barney'})
        self.assertIsNone(registry.lookup('barney!'))

    def test_redeclare_replaces(self):
        registry = PrototypeRegistry()
        registry.declare('wilma', 'user', {'name': 'wilma'})
        definition = registry.declare('wilma', creation_fn=str.upper)
        self.assertEqual(len(registry), 1)
        self.assertIs(registry.get('wilma'), definition)
        self.assertIsNone(registry.lookup('wilma!'))
        self.assertEqual(registry.lookup('wilma'),
                         (FactoryVariant.PLAIN, definition))

    def test_declare_invalid(self):
        registry = PrototypeRegistry()
        with self.assertRaises(UnexpectedParameterError):
            registry.declare('not valid', 'user')

        with self.assertRaises(UnexpectedParameterError):
            registry.declare('wilma', 'user', {'name': 'wilma'},
                             creation_fn=str.upper)

        with self.assertRaises(UnexpectedParameterError):
            registry.declare('wilma', 'user', creation_fn='wilma')

        self.assertEqual(len(registry), 0)

    def test_reset(self):
        registry = PrototypeRegistry()
        registry.declare('wilma', 'user')
        registry.reset()
        self.assertEqual(len(registry), 0)
        self.assertIsNone(registry.lookup('wilma'))

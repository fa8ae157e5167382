"""Test `openid_rp.principal` module."""
import unittest
from unittest.mock import Mock

from openid_rp.principal import (EMPTY_PASSWORD, AuthenticationContext, OpenIDPrincipal, RealmPrincipalFactory,
                                 createPrincipal, materialize)

IDENTIFIER = 'https://example.com/user/42'
PROVIDER = 'https://op.example.com/openid/server'


class MaterializeTest(unittest.TestCase):
    def test_materialize(self):
        attributes = {'email': ['a@example.com']}
        principal = materialize(IDENTIFIER, PROVIDER, attributes, ['user', 'admin'])

        self.assertEqual(principal.getName(), IDENTIFIER)
        self.assertEqual(str(principal), IDENTIFIER)
        self.assertEqual(principal.providerEndpoint, PROVIDER)
        self.assertEqual(principal.attributes, attributes)
        self.assertEqual(principal.roles, ('user', 'admin'))

    def test_no_attributes(self):
        self.assertEqual(materialize(IDENTIFIER, PROVIDER, None, []).attributes, {})

    def test_copies(self):
        attributes = {'email': ['a@example.com']}
        roles = ['user']
        principal = materialize(IDENTIFIER, PROVIDER, attributes, roles)
        attributes['fullname'] = ['Alice']
        roles.append('admin')
        self.assertEqual(principal, OpenIDPrincipal(IDENTIFIER, PROVIDER, {'email': ['a@example.com']}, ['user']))


class StrategyTest(unittest.TestCase):
    def setUp(self):
        self.principal = materialize(IDENTIFIER, PROVIDER, {}, ['user'])
        self.context = AuthenticationContext(self.principal, ['user'])

    def test_createPrincipal(self):
        self.assertIs(createPrincipal(self.context), self.principal)

    def test_realm(self):
        realm = Mock()
        factory = RealmPrincipalFactory(realm)

        self.assertIs(factory(self.context), realm.authenticate.return_value)
        realm.authenticate.assert_called_once_with(IDENTIFIER, EMPTY_PASSWORD, self.context)

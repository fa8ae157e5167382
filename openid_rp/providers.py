"""Lookup of the well-known OpenID providers.

A short service key, as sent by a login page, selects the identifier
that discovery is run against.  Unknown keys never fail: they select the
default provider.
"""
from types import MappingProxyType

__all__ = ['PROVIDERS', 'DEFAULT_PROVIDER', 'ProviderRegistry',
           'resolveProvider']

PROVIDERS = MappingProxyType({
    'google': 'https://www.google.com/accounts/o8/id',
    'yahoo': 'https://me.yahoo.com/',
    'myspace': 'myspace.com',
    'myopenid': 'https://myopenid.com/',
})

DEFAULT_PROVIDER = 'google'


class ProviderRegistry(object):
    """Read-only table of provider keys and their endpoints.

    @ivar default: the key used for unknown hints, or C{None} to make
        unknown hints resolve to nothing.
    """

    def __init__(self, providers=PROVIDERS, default=DEFAULT_PROVIDER):
        self.providers = MappingProxyType(dict(providers))
        if default is not None and default not in self.providers:
            raise KeyError('Default provider %r is not registered' % (default,))
        self.default = default

    def resolve(self, key):
        """Return the endpoint registered for C{key}.

        @param key: a provider key such as C{'yahoo'}; may be C{None}.

        @returns: the endpoint, the default endpoint when C{key} is
            missing or unknown, or C{None} when there is no default.
        @rtype: str or NoneType
        """
        if key and key in self.providers:
            return self.providers[key]

        if self.default is None:
            return None
        return self.providers[self.default]

    def __contains__(self, key):
        return key in self.providers

    def __repr__(self):
        return '<%s.%s default=%r keys=%r>' % (
            self.__class__.__module__, self.__class__.__name__,
            self.default, sorted(self.providers))


default_registry = ProviderRegistry()


def resolveProvider(key):
    """Resolve C{key} against the built-in providers, falling back to
    Google."""
    return default_registry.resolve(key)

"""Identities produced by a verified OpenID response."""

__all__ = ['EMPTY_PASSWORD', 'VerifiedIdentity', 'OpenIDPrincipal',
           'AuthenticationContext', 'materialize', 'createPrincipal',
           'RealmPrincipalFactory']

# Password handed to realms that authenticate an already verified
# OpenID principal.
EMPTY_PASSWORD = 'EMPTY'


class VerifiedIdentity(object):
    """Identifier and attributes of a response that verified.

    @ivar identifier: the verified OpenID identifier.
    @ivar providerEndpoint: URL of the provider that verified it.
    @ivar attributes: dict of attribute names to lists of values.
    """

    def __init__(self, identifier, providerEndpoint, attributes=None):
        self.identifier = identifier
        self.providerEndpoint = providerEndpoint
        self.attributes = attributes if attributes is not None else {}

    def __repr__(self):
        return '%s(%r, %r, %r)' % (self.__class__.__name__, self.identifier,
                                   self.providerEndpoint, self.attributes)


class OpenIDPrincipal(object):
    """An authenticated OpenID user.

    The name is the raw verified identifier.
    """

    def __init__(self, name, providerEndpoint, attributes=None, roles=()):
        self.name = name
        self.providerEndpoint = providerEndpoint
        self.attributes = dict(attributes) if attributes else {}
        self.roles = tuple(roles)

    def getName(self):
        return self.name

    def __eq__(self, other):
        if not isinstance(other, OpenIDPrincipal):
            return NotImplemented
        return (self.name == other.name and
                self.providerEndpoint == other.providerEndpoint and
                self.attributes == other.attributes and
                self.roles == other.roles)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((self.name, self.providerEndpoint))

    def __str__(self):
        return self.name

    def __repr__(self):
        return '<%s.%s %r roles=%r>' % (
            self.__class__.__module__, self.__class__.__name__,
            self.name, list(self.roles))


class AuthenticationContext(object):
    """The principal just verified together with its roles.

    Passed explicitly to whatever authenticates the principal with the
    host after verification.
    """

    def __init__(self, principal, roles):
        self.principal = principal
        self.roles = tuple(roles)

    def __repr__(self):
        return '%s(%r, %r)' % (self.__class__.__name__, self.principal, self.roles)


def materialize(identifier, providerEndpoint, attributes, roles):
    """Pair a verified identifier with its attributes and roles.

    @rtype: L{OpenIDPrincipal}
    """
    return OpenIDPrincipal(identifier, providerEndpoint, attributes, roles)


def createPrincipal(context):
    """Default principal strategy: the OpenID principal itself."""
    return context.principal


class RealmPrincipalFactory(object):
    """Principal strategy delegating to a host realm.

    The realm must provide C{authenticate(name, password, context)} and
    return the host's principal.  It receives L{EMPTY_PASSWORD} since
    the user was already authenticated by the provider, and the
    L{AuthenticationContext} carrying the attributes and roles.
    """

    def __init__(self, realm):
        self.realm = realm

    def __call__(self, context):
        return self.realm.authenticate(
            context.principal.getName(), EMPTY_PASSWORD, context)

"""Exceptions raised by the relying party.

Every failure of the OpenID library is re-raised as one of the classes
below, with the original exception available both as C{__cause__} and
as the C{cause} attribute.  A response that was checked and simply did
not verify is not an error: see
C{L{AuthenticationFailure<openid_rp.processor.AuthenticationFailure>}}.
"""

__all__ = ['OpenIDError', 'ConfigurationError', 'DiscoveryError',
           'AssociationError', 'VerificationTransportError',
           'LifecycleError']


class OpenIDError(Exception):
    """Base class for all relying party errors.

    @ivar cause: the exception that triggered this one, if any.
    """

    def __init__(self, message, cause=None):
        Exception.__init__(self, message)
        self.cause = cause


class ConfigurationError(OpenIDError):
    """The processor was set up with values it cannot work with."""


class DiscoveryError(OpenIDError):
    """The provider identifier could not be resolved to an endpoint."""


class AssociationError(OpenIDError):
    """No discovered endpoint could be used to issue a request."""


class VerificationTransportError(OpenIDError):
    """The provider response could not be checked at all."""


class LifecycleError(OpenIDError):
    """An operation was invoked out of order, e.g. a callback arrived
    for a session that never issued a request."""

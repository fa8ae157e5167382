"""The two-phase OpenID authentication flow of the relying party.

A host drives one C{L{OpenIDProcessor}} per protected application:

    1. When an unauthenticated user arrives, the host calls
       C{L{prepareRequest<OpenIDProcessor.prepareRequest>}} with the
       provider the user chose and the user's session, and redirects
       the browser to the URL of the returned C{L{RedirectInstruction}}.

    2. When the provider sends the browser back to the return URL, the
       host calls C{L{completeRequest<OpenIDProcessor.completeRequest>}}
       with the exact URL that was requested, its query parameters and
       the same session.  The result is either the authenticated
       principal or an C{L{AuthenticationFailure}}, which the host
       answers with 403 Forbidden.

The session is any C{dict}-like object owned by the host.  Between the
two calls it holds the discovery record the request was issued
against, and the response is only ever verified against that record.

@var AUTH: phase of a session waiting for the provider's response.

@var AUTHZ: reserved, never entered.

@var FINISH: phase of a session whose response verified.

@var FAILED: phase of a session whose response did not verify or could
    not be checked.  A new flow has to start with C{prepareRequest}.
"""
import logging
from collections import namedtuple

from openid_rp.attributes import FetchSpec, getTypeURI
from openid_rp.client import OpenIDClient
from openid_rp.errors import ConfigurationError, LifecycleError, OpenIDError
from openid_rp.principal import AuthenticationContext, VerifiedIdentity, createPrincipal, materialize
from openid_rp.providers import default_registry

__all__ = ['AUTH', 'AUTHZ', 'FINISH', 'FAILED', 'FlowConfig',
           'RedirectInstruction', 'AuthenticationFailure', 'OpenIDProcessor',
           'buildReceivingURL']

_LOGGER = logging.getLogger(__name__)

AUTH = 'AUTH'
AUTHZ = 'AUTHZ'
FINISH = 'FINISH'
FAILED = 'FAILED'


def buildReceivingURL(request_url, query_string):
    """Rebuild the URL the provider sent the browser to.

    The query string is appended verbatim: verification compares it
    with what the provider signed, so it must not be decoded or
    re-encoded.
    """
    if query_string:
        return '%s?%s' % (request_url, query_string)
    return request_url


class FlowConfig(namedtuple('FlowConfig', ['return_url', 'required_attributes',
                                           'optional_attributes', 'realm'])):
    """Settings of one processor.

    @ivar return_url: URL the provider sends the browser back to.
    @ivar required_attributes: comma and/or space delimited attribute
        names the provider must return, e.g. C{'email,fullname'}.
    @ivar optional_attributes: delimited attribute names the provider
        may return.
    @ivar realm: the realm shown to the user by the provider; defaults
        to C{return_url}.
    """
    __slots__ = ()

    def __new__(cls, return_url, required_attributes=None, optional_attributes=None,
                realm=None):
        if not return_url:
            raise ConfigurationError('A return URL is required')
        if realm is None:
            realm = return_url
        return super(FlowConfig, cls).__new__(
            cls, return_url, required_attributes, optional_attributes, realm)


class RedirectInstruction(object):
    """Tells the host to redirect the browser to C{url}."""

    http_status = 302

    def __init__(self, url):
        self.url = url

    def __repr__(self):
        return '%s(%r)' % (self.__class__.__name__, self.url)


class AuthenticationFailure(object):
    """A provider response that did not verify.

    Not an error: the host answers it with an access denied response.

    @ivar reason: human readable explanation.
    @ivar response: the OpenID library response, if any.
    """

    http_status = 403

    def __init__(self, reason, response=None):
        self.reason = reason
        self.response = response

    def __repr__(self):
        return '%s(%r)' % (self.__class__.__name__, self.reason)


class OpenIDProcessor(object):
    """Runs the OpenID authentication flow for a host.

    A processor is shared by all requests; it holds no per-user state.

    @cvar auth_type_key: session key of the provider chosen earlier,
        used when a request carries no provider hint.
    @cvar provider_key: session key of the chosen provider endpoint.
    @cvar discovery_key: session key of the pending discovery record.
    @cvar state_key: session key of the flow phase.
    @cvar principal_key: session key the authenticated OpenID principal
        is stored under.
    """
    auth_type_key = 'authType'
    provider_key = 'openid'
    discovery_key = 'discovery'
    state_key = 'STATE'
    principal_key = 'PRINCIPAL'

    def __init__(self, config, client=None, registry=None,
                 principal_factory=createPrincipal, client_factory=OpenIDClient,
                 resolver=getTypeURI):
        """
        @param config: the L{FlowConfig}.

        @param client: the C{L{OpenIDClient<openid_rp.client.OpenIDClient>}}
            to use.  When omitted, one is created by C{client_factory}
            on L{initialize}.

        @param registry: the
            C{L{ProviderRegistry<openid_rp.providers.ProviderRegistry>}};
            defaults to the built-in providers.

        @param principal_factory: callable turning an
            C{L{AuthenticationContext<openid_rp.principal.AuthenticationContext>}}
            into the principal returned to the host, or C{None} to
            reject it.  See
            C{L{RealmPrincipalFactory<openid_rp.principal.RealmPrincipalFactory>}}.

        @param resolver: callable mapping attribute names to attribute
            exchange type URIs.
        """
        self.config = config
        self.client = client
        self.client_factory = client_factory
        self.registry = registry if registry is not None else default_registry
        self.principal_factory = principal_factory
        self.resolver = resolver
        self.fetch_spec = None
        self.roles = ()
        self.initialized = False

    def isInitialized(self):
        return self.initialized

    def initialize(self, requiredRoles=()):
        """Prepare the processor for use.  Safe to call more than once.

        @param requiredRoles: roles given to every authenticated
            principal.

        @raises ConfigurationError: when the OpenID client cannot be
            created or a required attribute has no known type.
        """
        if self.client is None:
            try:
                self.client = self.client_factory()
            except Exception as exc:
                raise ConfigurationError(
                    'Could not create the OpenID client: %s' % (exc,), exc) from exc

        if self.fetch_spec is None:
            self.fetch_spec = FetchSpec.fromConfig(
                self.config.required_attributes,
                self.config.optional_attributes,
                self.resolver)

        self.roles = tuple(requiredRoles or ())
        self.initialized = True

    def getPhase(self, session):
        """Return the flow phase recorded in C{session}, C{None} before
        any request was issued."""
        if session is None:
            return None
        return session.get(self.state_key)

    def prepareRequest(self, serviceHint, session):
        """Start authentication with the provider named by C{serviceHint}.

        @param serviceHint: a provider key such as C{'yahoo'}.  When
            empty, the key stored in the session is used, then the
            default provider.

        @param session: the user's C{dict}-like session.

        @returns: where to send the browser, or C{None} when no provider
            could be determined.
        @rtype: L{RedirectInstruction} or C{NoneType}

        @raises DiscoveryError: when the provider cannot be discovered.
        @raises AssociationError: when no discovered service is usable.
        @raises ConfigurationError: when the request cannot be built
            from the configured return URL and realm.
        @raises LifecycleError: when the processor is not initialized or
            there is no session.
        """
        if not self.initialized:
            raise LifecycleError('wrong lifecycle: processor is not initialized')

        if session is None:
            raise LifecycleError('wrong lifecycle: session was null')

        # Whatever a previous attempt left behind must not be verified,
        # nor outlive a new attempt.
        for key in (self.discovery_key, self.principal_key, self.state_key):
            session.pop(key, None)

        if not serviceHint:
            serviceHint = session.get(self.auth_type_key)

        endpoint = self.registry.resolve(serviceHint)
        if endpoint is None:
            _LOGGER.warning('No OpenID provider for %r, no request issued', serviceHint)
            return None

        session[self.provider_key] = endpoint

        record = self.client.associate(self.client.discover(endpoint))
        session[self.discovery_key] = record

        try:
            auth_request = self.client.authenticate(record, self.config.return_url)
            auth_request.addExtension(self.fetch_spec.toFetchRequest())
            url = auth_request.redirectURL(self.config.realm, self.config.return_url)
        except OpenIDError:
            raise
        except Exception as exc:
            raise ConfigurationError(
                'Could not build the authentication request: %s' % (exc,), exc) from exc

        session[self.state_key] = AUTH
        _LOGGER.info('Redirecting to OpenID provider %s', record.providerEndpoint)
        return RedirectInstruction(url)

    def completeRequest(self, receivingUrl, responseParams, session):
        """Verify the provider's response to a request issued by
        L{prepareRequest} for the same session.

        The pending discovery record is removed from the session before
        verification, whatever the outcome.

        @param receivingUrl: the URL the provider sent the browser to,
            query string included.  See L{buildReceivingURL}.

        @param responseParams: the query parameters of that request.
            Values may be lists.

        @param session: the user's session.

        @returns: the principal built by the principal strategy, or an
            L{AuthenticationFailure}.

        @raises LifecycleError: when the session has no pending request.
        @raises VerificationTransportError: when the response cannot be
            checked.
        """
        if session is None:
            raise LifecycleError('wrong lifecycle: session was null')

        record = session.pop(self.discovery_key, None)
        if record is None:
            raise LifecycleError('wrong lifecycle: discovered information was null')

        session.pop(self.principal_key, None)
        session[self.state_key] = FAILED

        result = self.client.verify(receivingUrl, responseParams, record)
        if result.verifiedIdentifier is None:
            _LOGGER.info('OpenID response from %s did not verify', record.providerEndpoint)
            return AuthenticationFailure(result.reason, result.authResponse)

        attributes = result.attributeExchangePayload(self.fetch_spec)
        identity = VerifiedIdentity(result.verifiedIdentifier, record.providerEndpoint,
                                    attributes or {})

        openid_principal = materialize(identity.identifier, identity.providerEndpoint,
                                       identity.attributes, self.roles)
        principal = self.principal_factory(AuthenticationContext(openid_principal, self.roles))
        if principal is None:
            _LOGGER.info('Principal %s was rejected by the host', identity.identifier)
            return AuthenticationFailure('Principal rejected: %s' % (identity.identifier,))

        session[self.principal_key] = openid_principal
        session[self.state_key] = FINISH
        _LOGGER.info('Logged in as: %s', principal)
        return principal

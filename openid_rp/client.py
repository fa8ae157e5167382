"""Discovery, association and verification on top of the OpenID library.

This is the only module of the relying party that talks to
C{openid.consumer}.  It exposes the three calls the authentication flow
needs and turns every failure of the library into an
C{L{openid_rp.errors}} exception:

    - C{L{OpenIDClient.discover}} resolves a provider identifier into
      C{L{DiscoveryRecord}}s,

    - C{L{OpenIDClient.associate}} picks the record the request is
      issued against, establishing a shared secret where possible,

    - C{L{OpenIDClient.verify}} checks the provider's response against
      that same record.
"""
import logging

from openid.consumer.consumer import SUCCESS, GenericConsumer
from openid.consumer.discover import discover as discoverURI
from openid.extensions import ax
from openid.message import Message
from openid.store.memstore import MemoryStore

from openid_rp.attributes import FetchSpec
from openid_rp.errors import AssociationError, DiscoveryError, VerificationTransportError

__all__ = ['DiscoveryRecord', 'VerificationResult', 'OpenIDClient',
           'flattenParams']

_LOGGER = logging.getLogger(__name__)


def flattenParams(params):
    """Reduce a multi-valued query mapping to its first values.

    The OpenID message parser does not accept lists of values, while
    most web frameworks hand them out.
    """
    flat = {}
    for key, value in params.items():
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            value = value[0]
        flat[key] = value
    return flat


class DiscoveryRecord(object):
    """A discovered OpenID service, possibly with its association.

    Instances are stored in the user's session between the request and
    the callback, and the callback is only verified against the very
    instance that produced the request.

    @ivar claimed_id: the normalized identifier discovery ran for.
    @ivar endpoint: C{openid.consumer.discover.OpenIDServiceEndpoint}
    @ivar association: C{openid.association.Association} or C{None}
        when the provider is used in stateless mode.
    """

    def __init__(self, claimed_id, endpoint, association=None):
        self.claimed_id = claimed_id
        self.endpoint = endpoint
        self.association = association

    @property
    def providerEndpoint(self):
        return self.endpoint.server_url

    def withAssociation(self, association):
        return self.__class__(self.claimed_id, self.endpoint, association)

    def __repr__(self):
        return '<%s.%s server_url=%r claimed_id=%r associated=%s>' % (
            self.__class__.__module__, self.__class__.__name__,
            self.providerEndpoint, self.claimed_id,
            self.association is not None)


class VerificationResult(object):
    """Outcome of checking a provider response.

    @ivar verifiedIdentifier: the verified identifier, or C{None} when
        the response did not verify.
    @ivar authResponse: the C{openid.consumer.consumer.Response} the
        library produced.
    """

    def __init__(self, verifiedIdentifier, authResponse):
        self.verifiedIdentifier = verifiedIdentifier
        self.authResponse = authResponse

    @property
    def providerEndpoint(self):
        endpoint = getattr(self.authResponse, 'endpoint', None)
        if endpoint is None:
            return None
        return endpoint.server_url

    @property
    def reason(self):
        """Human readable explanation for a negative result."""
        if self.verifiedIdentifier is not None:
            return None
        message = getattr(self.authResponse, 'message', None)
        if isinstance(message, str):
            return message
        return 'OpenID response status: %s' % (
            getattr(self.authResponse, 'status', None),)

    def attributeExchangePayload(self, fetch_spec=None):
        """Return the attribute exchange data of a verified response.

        @param fetch_spec: the C{L{FetchSpec<openid_rp.attributes.FetchSpec>}}
            used to name the returned types.  Without it, the aliases
            chosen by the provider are used.

        @returns: mapping of attribute names to lists of values, or
            C{None} when the response carries no signed attribute
            exchange data.

        @raises VerificationTransportError: when the attribute exchange
            data is malformed.
        """
        response = self.authResponse
        if self.verifiedIdentifier is None:
            return None

        ns_uri = ax.AXMessage.ns_uri
        if ns_uri not in response.message.namespaces:
            return None

        ax_args = response.getSignedNS(ns_uri)
        if ax_args is None:
            _LOGGER.warning('Ignoring unsigned attribute exchange data from %s',
                            self.providerEndpoint)
            return None

        try:
            fetch_response = ax.FetchResponse.fromSuccessResponse(response)
        except ax.AXError as exc:
            raise VerificationTransportError(
                'Malformed attribute exchange response: %s' % (exc,), exc) from exc

        if fetch_response is None:
            return None

        # The fetch response drops the aliases, rebuild them from the
        # signed type.<alias> arguments.
        aliases = dict((type_uri, key[len('type.'):])
                       for key, type_uri in ax_args.items() if key.startswith('type.'))

        if fetch_spec is None:
            fetch_spec = FetchSpec()
        return fetch_spec.extractAttributes(fetch_response, aliases)


class OpenIDClient(object):
    """Adapter between the authentication flow and the OpenID consumer
    library.

    One client is shared by every flow of a processor; all per-user
    state lives in the C{L{DiscoveryRecord}}s it hands out.

    @ivar consumer: the C{openid.consumer.consumer.GenericConsumer}
        doing the protocol work.
    """

    def __init__(self, store=None):
        """
        @param store: an object implementing
            C{openid.store.interface.OpenIDStore}, shared by all flows.
            Defaults to an in-memory store, which only suits a single
            process.
        """
        if store is None:
            store = MemoryStore()
        self.store = store
        self.consumer = GenericConsumer(store)

    def discover(self, identifier):
        """Run OpenID discovery for C{identifier}.

        @rtype: [L{DiscoveryRecord}]

        @raises DiscoveryError: when discovery fails or finds no
            OpenID service.
        """
        try:
            claimed_id, services = discoverURI(identifier)
        except Exception as exc:
            raise DiscoveryError(
                'Discovery failed for %s: %s' % (identifier, exc), exc) from exc

        if not services:
            raise DiscoveryError('No usable OpenID services found for %s' % (identifier,))

        _LOGGER.debug('Discovered %d service(s) for %s', len(services), claimed_id)
        return [DiscoveryRecord(claimed_id, service) for service in services]

    def associate(self, records):
        """Choose the record to send the user to.

        The first record an association can be established with wins.
        When none can, the first record is used in stateless mode.

        @raises AssociationError: when C{records} is empty or the
            library fails while associating.
        """
        if not records:
            raise AssociationError('No discovered services to associate with')

        for record in records:
            try:
                association = self.consumer.begin(record.endpoint).assoc
            except Exception as exc:
                raise AssociationError(
                    'Association with %s failed: %s' % (record.providerEndpoint, exc),
                    exc) from exc

            if association is not None:
                _LOGGER.debug('Associated with %s, handle %s',
                              record.providerEndpoint, association.handle)
                return record.withAssociation(association)

        _LOGGER.info('No association established, using %s in stateless mode',
                     records[0].providerEndpoint)
        return records[0]

    def authenticate(self, record, return_to):
        """Create the authentication request for an associated record.

        The request carries the return_to arguments the library adds for
        replay protection, and is bound to the record's own association.

        @rtype: C{openid.consumer.consumer.AuthRequest}

        @raises AssociationError: when the library fails to create the
            request.
        """
        try:
            auth_request = self.consumer.begin(record.endpoint)
        except Exception as exc:
            raise AssociationError(
                'Request to %s failed: %s' % (record.providerEndpoint, exc), exc) from exc

        auth_request.assoc = record.association
        return auth_request

    def verify(self, receiving_url, params, record):
        """Check a provider response against C{record}.

        @param receiving_url: the URL the response was delivered to,
            query string included, exactly as the provider sent it.
        @param params: the response parameters; values may be lists.
        @param record: the L{DiscoveryRecord} the request was issued
            against.

        @rtype: L{VerificationResult}

        @raises VerificationTransportError: when the response cannot be
            checked at all.
        """
        try:
            message = Message.fromPostArgs(flattenParams(params))
            response = self.consumer.complete(message, record.endpoint, receiving_url)
        except Exception as exc:
            raise VerificationTransportError(
                'Verification against %s failed: %s' % (record.providerEndpoint, exc),
                exc) from exc

        if response.status == SUCCESS:
            return VerificationResult(response.identity_url, response)

        _LOGGER.info('Response from %s did not verify: %s',
                     record.providerEndpoint, response.status)
        return VerificationResult(None, response)

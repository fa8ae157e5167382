"""Helpers shared by the relying party tests."""
from urllib.parse import urlencode

from openid.consumer.consumer import CancelResponse, SuccessResponse
from openid.consumer.discover import OpenIDServiceEndpoint
from openid.extensions import ax
from openid.message import OPENID2_NS, Message

from openid_rp.attributes import ATTRIBUTE_TYPES
from openid_rp.client import DiscoveryRecord, VerificationResult

OP_ENDPOINT = 'https://op.example.com/openid/server'
RETURN_URL = 'https://rp.example.com/openid/return'


def makeEndpoint(server_url=OP_ENDPOINT, claimed_id=None):
    endpoint = OpenIDServiceEndpoint.fromOPEndpointURL(server_url)
    if claimed_id is not None:
        endpoint.claimed_id = claimed_id
    return endpoint


def makeRecord(identifier, server_url=OP_ENDPOINT):
    return DiscoveryRecord(identifier, makeEndpoint(server_url))


def makeSuccessResponse(claimed_id, server_url=OP_ENDPOINT, attributes=None,
                        signed=True):
    """Build a verified response, with attribute exchange data for the
    names in C{attributes} when given."""
    args = {
        'ns': OPENID2_NS,
        'mode': 'id_res',
        'claimed_id': claimed_id,
        'identity': claimed_id,
        'op_endpoint': server_url,
    }
    if attributes is not None:
        args['ns.ax'] = ax.AXMessage.ns_uri
        args['ax.mode'] = 'fetch_response'
        for name, values in attributes.items():
            args['ax.type.' + name] = ATTRIBUTE_TYPES.get(name, 'http://example.com/' + name)
            args['ax.count.' + name] = str(len(values))
            for index, value in enumerate(values):
                args['ax.value.%s.%d' % (name, index + 1)] = value

    if signed:
        signed_fields = ['openid.' + key for key in args]
    else:
        signed_fields = ['openid.mode', 'openid.claimed_id', 'openid.identity']

    return SuccessResponse(makeEndpoint(server_url, claimed_id),
                           Message.fromOpenIDArgs(args), signed_fields)


def verified(claimed_id, server_url=OP_ENDPOINT, attributes=None):
    return VerificationResult(claimed_id, makeSuccessResponse(claimed_id, server_url, attributes))


def cancelled(server_url=OP_ENDPOINT):
    return VerificationResult(None, CancelResponse(makeEndpoint(server_url)))


class StubAuthRequest(object):
    def __init__(self, record, return_to):
        self.record = record
        self.return_to = return_to
        self.extensions = []

    def addExtension(self, extension_request):
        self.extensions.append(extension_request)

    def redirectURL(self, realm, return_to=None, immediate=False):
        args = {'openid.realm': realm, 'openid.return_to': return_to}
        for extension in self.extensions:
            for key, value in extension.getExtensionArgs().items():
                args['openid.ax.' + key] = value
        return '%s?%s' % (self.record.providerEndpoint, urlencode(sorted(args.items())))


class StubClient(object):
    """In-process stand-in for C{OpenIDClient}.

    Each discovery yields a new record, so records of different flows
    can be told apart.  C{verify} answers with C{verifier(record)}.
    """

    def __init__(self, verifier=None):
        self.verifier = verifier
        self.discovered = []
        self.verified = []
        self.counter = 0

    def discover(self, identifier):
        self.counter += 1
        record = makeRecord('%s#%d' % (identifier, self.counter))
        self.discovered.append(record)
        return [record]

    def associate(self, records):
        return records[0]

    def authenticate(self, record, return_to):
        return StubAuthRequest(record, return_to)

    def verify(self, receiving_url, params, record):
        self.verified.append((receiving_url, params, record))
        return self.verifier(record)

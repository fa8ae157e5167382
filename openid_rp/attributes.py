"""Attribute exchange settings of the relying party.

Application code names profile attributes by short names (C{email},
C{fullname}, ...).  This module maps those names to the axschema.org
type URIs sent in an attribute exchange fetch request and builds the
list of attributes fetched with every authentication request.
"""
import logging
import re
from types import MappingProxyType

from openid.extensions import ax

from openid_rp.errors import ConfigurationError

__all__ = ['ATTRIBUTE_TYPES', 'getTypeURI', 'tokenize', 'FetchAttribute',
           'FetchSpec']

_LOGGER = logging.getLogger(__name__)

ATTRIBUTE_TYPES = MappingProxyType({
    'email': 'http://axschema.org/contact/email',
    'fullname': 'http://axschema.org/namePerson',
    'firstname': 'http://axschema.org/namePerson/first',
    'lastname': 'http://axschema.org/namePerson/last',
    'nickname': 'http://axschema.org/namePerson/friendly',
    'prefix': 'http://axschema.org/namePerson/prefix',
    'dob': 'http://axschema.org/birthDate',
    'gender': 'http://axschema.org/person/gender',
    'address': 'http://axschema.org/contact/postalAddress/home',
    'city': 'http://axschema.org/contact/city/home',
    'state': 'http://axschema.org/contact/state/home',
    'postcode': 'http://axschema.org/contact/postalCode/home',
    'country': 'http://axschema.org/contact/country/home',
    'phone': 'http://axschema.org/contact/phone/default',
    'mobile': 'http://axschema.org/contact/phone/cell',
    'company': 'http://axschema.org/company/name',
    'title': 'http://axschema.org/company/title',
    'language': 'http://axschema.org/pref/language',
    'timezone': 'http://axschema.org/pref/timezone',
    'website': 'http://axschema.org/contact/web/default',
    'blog': 'http://axschema.org/contact/web/blog',
    'image': 'http://axschema.org/media/image/default',
    'biography': 'http://axschema.org/media/biography',
})

_SEPARATORS = re.compile(r'[\s,]+')


def getTypeURI(name):
    """Return the type URI for attribute C{name}, or C{None}."""
    return ATTRIBUTE_TYPES.get(name)


def tokenize(value):
    """Split a comma and/or whitespace delimited list of names.

    >>> tokenize('email, fullname language')
    ['email', 'fullname', 'language']
    """
    if not value:
        return []
    return [token for token in _SEPARATORS.split(value) if token]


class FetchAttribute(object):
    """One attribute requested from the provider."""

    __slots__ = ('name', 'type_uri', 'required')

    def __init__(self, name, type_uri, required):
        self.name = name
        self.type_uri = type_uri
        self.required = required

    def __eq__(self, other):
        if not isinstance(other, FetchAttribute):
            return NotImplemented
        return (self.name, self.type_uri, self.required) == \
            (other.name, other.type_uri, other.required)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((self.name, self.type_uri, self.required))

    def __repr__(self):
        return '%s(%r, %r, required=%r)' % (
            self.__class__.__name__, self.name, self.type_uri, self.required)


class FetchSpec(object):
    """Ordered set of attributes fetched with every request.

    Built once when the processor is initialized and shared, read-only,
    by every flow afterwards.

    @ivar attributes: tuple of L{FetchAttribute}, required ones first.
    """

    def __init__(self, attributes=()):
        self.attributes = tuple(attributes)
        self._names_by_type = dict(
            (attr.type_uri, attr.name) for attr in self.attributes)

    @classmethod
    def fromConfig(cls, required=None, optional=None, resolver=getTypeURI):
        """Build the attribute list from the configured names.

        @param required: delimited names the provider must return.
        @param optional: delimited names the provider may return.
        @param resolver: callable mapping a name to its type URI or
            C{None}.

        @raises ConfigurationError: when a required attribute has no
            known type URI.  An unknown optional attribute is logged and
            left out of the request.
        """
        attributes = []
        seen_names = set()
        seen_types = set()

        requested = [(token, True) for token in tokenize(required)]
        requested.extend((token, False) for token in tokenize(optional))

        for name, is_required in requested:
            if name in seen_names:
                continue

            type_uri = resolver(name)
            if type_uri is None:
                if is_required:
                    raise ConfigurationError(
                        'No attribute type known for required attribute %r'
                        % (name,))
                _LOGGER.error('Null type returned for %s, attribute skipped', name)
                continue

            if type_uri in seen_types:
                _LOGGER.warning('Attribute %s repeats type %s, attribute skipped',
                                name, type_uri)
                continue

            seen_names.add(name)
            seen_types.add(type_uri)
            attributes.append(FetchAttribute(name, type_uri, is_required))

        return cls(attributes)

    def __iter__(self):
        return iter(self.attributes)

    def __len__(self):
        return len(self.attributes)

    def __repr__(self):
        return '%s(%r)' % (self.__class__.__name__, list(self.attributes))

    def toFetchRequest(self):
        """Create a new attribute exchange fetch request.

        A fresh request is returned on each call since the library
        mutates it while attaching it to an authentication request.

        @rtype: C{openid.extensions.ax.FetchRequest}
        """
        fetch_request = ax.FetchRequest()
        for attr in self.attributes:
            fetch_request.add(
                ax.AttrInfo(attr.type_uri, alias=attr.name, required=attr.required))
        return fetch_request

    def extractAttributes(self, fetch_response, aliases=None):
        """Convert an attribute exchange fetch response to a mapping of
        attribute names to lists of values.

        Type URIs that were not requested are kept under the alias the
        provider used for them when C{aliases} knows it, else under the
        type URI itself.

        @type fetch_response: C{openid.extensions.ax.FetchResponse}
        @param aliases: dict of type URIs to the provider's aliases.
        @rtype: dict
        """
        if aliases is None:
            aliases = {}
        attributes = {}
        for type_uri, values in fetch_response.data.items():
            name = self._names_by_type.get(type_uri)
            if name is None:
                name = aliases.get(type_uri, type_uri)
            attributes[name] = list(values)
        return attributes

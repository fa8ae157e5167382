"""
OpenID 2.0 relying party.

This package drives the relying party side of an OpenID authentication:
it sends the user to an identity provider with an attribute exchange
request and turns the provider's verified answer into a principal with
its attributes and roles.  Discovery, association and signature checks
are done by the C{openid} library.  See C{L{openid_rp.processor}} for
the flow.
"""

__version__ = '1.0.0'

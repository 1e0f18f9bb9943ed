"""The request serializers for all WFS operations.

Each operation can be encoded as query parameters (:mod:`~wfsclient.operations.kvp`)
for GET requests, or as XML document (:mod:`~wfsclient.operations.xml`) for POST requests.
The options of each operation are defined in :mod:`~wfsclient.operations.base`.
"""

"""
Serve decoded save data to a phone app over TCP.

The protocol, as spoken by the console-side homebrew::

    client                          server (port 8888)
      |  {"action":"sync"}  ------->  |
      |  <-------  JSON payload (v2)  |
      |  {"action":"ack"}   ------->  |
      |                           close

The payload is built once per session from a `SaveData` decoded before
the server started; see `_encoder` for its shape.

"""
from wiifitio.sync._config import SyncConfig, DEFAULT_CONFIG
from wiifitio.sync._encoder import (
    encode, encode_error, encode_into, encode_response, JsonBuilder)
from wiifitio.sync._server import SyncServer
from wiifitio.sync._session import Phase, SyncSession
from wiifitio.sync._transport import TCPConnection, TCPListener
from wiifitio.sync.client import fetch, loads_response, ServerError

__version__ = '0.1.0'
__lang__ = 'python3'

PROTOCOL = 1

CONNECT_OP = b'CONNECT'
_CRLF_ = b'\r\n'
_SPC_ = b' '

# CONNECT option keys, in the order they are sent.
OPTION_LANG = "lang"
OPTION_VERSION = "version"
OPTION_NAME = "name"
OPTION_PROTOCOL = "protocol"
OPTION_VERBOSE = "verbose"
OPTION_PEDANTIC = "pedantic"
OPTION_TLS_REQUIRED = "tls_required"
OPTION_ECHO = "echo"
OPTION_NKEY = "nkey"
OPTION_SIG = "sig"
OPTION_JWT = "jwt"
OPTION_USER = "user"
OPTION_PASSWORD = "pass"
OPTION_AUTH_TOKEN = "auth_token"

from .string_handlers import (
    remove_last_newline,
    preview_bytes,
    )
from .json_handlers import (
    load_config,
    )
from .addr_handlers import (
    format_addr,
    )
from .server_configs import (
    ServerConfig,
    CLIENT_ERROR_POLICIES,
    )

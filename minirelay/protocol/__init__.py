from .framing import extract_lines, LINE_TERMINATOR
from .messages import (
    arrival_notice,
    departure_notice,
    client_prefix,
    prefix_line,
    )

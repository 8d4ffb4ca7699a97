"""Customer domain constants."""

import re

PHONE_PATTERN = re.compile(r"^\+?[\d\s-]{8,15}$")

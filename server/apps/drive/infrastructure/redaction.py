"""Scrubbing of credential-like values from text and log records."""

import logging
import re
from typing import Final, override

_REDACTED: Final = '[REDACTED]'

# key=value, key: value and "key": "value" where the key looks secret
_SECRET_PAIR: Final = re.compile(
    r'(?P<key>[\w-]*(?:password|passwd|token|secret|key|signature|'
    r'credential|authorization)[\w-]*)'
    r'(?P<sep>["\']?\s*[:=]\s*["\']?)'
    r'(?P<value>(?:bearer\s+|basic\s+)?[^\s"\'&,;]+)',
    re.IGNORECASE,
)

# Query string of a presigned URL carries the signature
_SIGNED_QUERY: Final = re.compile(
    r'(?P<url>https?://[^\s?]+)\?[^\s"\']*'
    r'(?:X-Amz-Signature|Signature|X-Amz-Credential)=[^\s"\']*',
    re.IGNORECASE,
)


def redact(text: str) -> str:
    """Replace credential-like substrings with a placeholder.

    Args:
        text: Arbitrary text, e.g. a collaborator error message.

    Returns:
        Text with secret values replaced by ``[REDACTED]``.
    """
    text = _SIGNED_QUERY.sub(
        lambda match: '{0}?{1}'.format(match.group('url'), _REDACTED),
        text,
    )
    return _SECRET_PAIR.sub(
        lambda match: '{0}{1}{2}'.format(
            match.group('key'),
            match.group('sep'),
            _REDACTED,
        ),
        text,
    )


class RedactingFilter(logging.Filter):
    """Logging filter that redacts messages and formatted tracebacks."""

    _formatter: Final = logging.Formatter()

    @override
    def filter(self, record: logging.LogRecord) -> bool:
        """Redact the record in place.

        Args:
            record: Log record about to be emitted.

        Returns:
            Always True, records are never dropped.
        """
        record.msg = redact(record.getMessage())
        record.args = None
        if record.exc_info and not record.exc_text:
            record.exc_text = redact(
                self._formatter.formatException(record.exc_info),
            )
        return True

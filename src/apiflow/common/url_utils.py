"""
apiflow URL Utilities

Shared URL helpers for building and recovering request URLs.
"""

import re
from urllib.parse import urlparse


SCHEME_PATTERN = re.compile(r'^[A-Za-z][A-Za-z0-9+.\-]*://')

# Characters the flow editor accepts in a relative path (query strings and
# ${var} interpolations included)
RELATIVE_PATH_PATTERN = re.compile(r'^[A-Za-z0-9/\-_.~?&=%:+,;@!*()\'\[\]]*$')

BASE_URL_PLACEHOLDER = '${baseUrl}'

DEFAULT_BASE_URL = "https://api.example.com"


class URLHelper:
    """URL handling for generated and recovered request URLs."""

    @staticmethod
    def has_scheme(url: str) -> bool:
        """
        Check whether a URL is absolute.

        Args:
            url: URL or path

        Returns:
            True if the URL starts with a scheme such as https://
        """
        return bool(SCHEME_PATTERN.match(url or ''))

    @staticmethod
    def normalize_base_url(base_url: str) -> str:
        """Strip surrounding whitespace and trailing slashes from a base URL."""
        return (base_url or '').strip().rstrip('/')

    @staticmethod
    def normalize_relative_path(path: str) -> str:
        """
        Normalize a relative path to start with exactly one slash.

        Args:
            path: Relative path, with or without leading slashes

        Returns:
            Path beginning with a single '/'
        """
        return '/' + (path or '').lstrip('/')

    @staticmethod
    def build_url_expression(url: str) -> str:
        """
        Build the template-literal body for a request URL.

        Absolute URLs are used as-is; relative paths are prefixed with
        the ${baseUrl} interpolation.

        Args:
            url: Absolute URL or path relative to the flow's base URL

        Returns:
            Text to place between backticks in the generated script
        """
        url = (url or '').strip()
        if URLHelper.has_scheme(url):
            return url
        return BASE_URL_PLACEHOLDER + URLHelper.normalize_relative_path(url)

    @staticmethod
    def strip_base_url(url: str) -> str:
        """
        Recover the step URL from a request URL expression.

        Removes any ${baseUrl} interpolation and normalizes what remains
        to a single leading slash when it is a relative path.

        Args:
            url: URL text captured from a script

        Returns:
            Absolute URL unchanged, or a normalized relative path
        """
        url = url.replace(BASE_URL_PLACEHOLDER, '').strip()
        if URLHelper.has_scheme(url):
            return url
        return URLHelper.normalize_relative_path(url)

    @staticmethod
    def is_valid_url(url: str) -> bool:
        """
        Check a step URL the way the flow editor does.

        Absolute URLs need a scheme and host; relative URLs may only use
        path-safe characters and ${var} interpolations.

        Args:
            url: URL to check

        Returns:
            True if the URL looks usable
        """
        url = (url or '').strip()
        if not url:
            return False

        if URLHelper.has_scheme(url):
            parsed = urlparse(url)
            return bool(parsed.netloc)

        without_vars = re.sub(r'\$\{[^}]*\}', 'x', url)
        return bool(RELATIVE_PATH_PATTERN.match(without_vars))

"""
OAuth 2.0 credential handling for the Photos Library API.
"""
import logging
import os
import sys
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse, parse_qs

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession, Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from photos_folder_sync.config import GooglePhotosConfig
from photos_folder_sync.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

# appendonly covers album creation, uploads and batchCreate/batchAddMediaItems;
# readonly.appcreateddata covers album listing and mediaItems:search
SCOPES = [
    'https://www.googleapis.com/auth/photoslibrary.appendonly',
    'https://www.googleapis.com/auth/photoslibrary.readonly.appcreateddata',
]


def get_token_file_path(token_file: Optional[str] = None) -> Path:
    """
    Determine where to store the OAuth token file.

    token.json holds refresh and access tokens, so it lives in a per-user
    config directory unless a path is configured explicitly.
    """
    if token_file:
        return Path(token_file)

    xdg_config_home = os.environ.get('XDG_CONFIG_HOME')
    base_dir = Path(xdg_config_home) if xdg_config_home else (Path.home() / '.config')
    token_dir = base_dir / 'google-photos-folder-sync'
    token_dir.mkdir(parents=True, exist_ok=True)
    return token_dir / 'token.json'


def is_headless_environment() -> bool:
    """Check if we're running without a display to open a browser on."""
    if sys.platform == 'darwin':
        return bool(os.environ.get('SSH_CLIENT') and not os.environ.get('DISPLAY'))
    if sys.platform.startswith('linux'):
        return os.environ.get('DISPLAY') is None
    return False


def _run_console_flow(flow: InstalledAppFlow) -> Credentials:
    flow.redirect_uri = 'http://localhost:8080/'
    auth_url, _ = flow.authorization_url(prompt='consent', access_type='offline')
    logger.info("Running in headless mode - manual authorization required")
    logger.info("Please visit this URL to authorize the application:")
    logger.info(auth_url)
    logger.info("Copy the ENTIRE redirect URL (http://localhost:8080/?code=...) and paste it here.")
    authorization_response = input("Enter the authorization response URL: ").strip()

    params = parse_qs(urlparse(authorization_response).query)
    code = params['code'][0] if 'code' in params else authorization_response
    flow.fetch_token(code=code)
    return flow.credentials


def get_credentials(config: GooglePhotosConfig) -> Credentials:
    """
    Load cached credentials, refreshing or re-authorizing as needed.

    Raises:
        AuthenticationError: If no valid credentials can be obtained
    """
    creds = None
    token_file = get_token_file_path(config.token_file)

    try:
        if token_file.exists():
            creds = Credentials.from_authorized_user_file(str(token_file), SCOPES)

        if creds and creds.valid:
            return creds

        if creds and creds.expired and creds.refresh_token:
            creds.refresh(Request())
        else:
            if not Path(config.credentials_file).exists():
                raise AuthenticationError(
                    f"Missing credentials file at {config.credentials_file}"
                )
            flow = InstalledAppFlow.from_client_secrets_file(config.credentials_file, SCOPES)
            if is_headless_environment():
                creds = _run_console_flow(flow)
            else:
                creds = flow.run_local_server(port=0)
    except (GoogleAuthError, ValueError, OSError) as e:
        raise AuthenticationError(f"Error authenticating with Google Photos: {e}") from e

    with open(token_file, 'w') as token:
        token.write(creds.to_json())
    os.chmod(token_file, 0o600)

    logger.info("Successfully authenticated with Google Photos Library API")
    return creds


def build_session(config: GooglePhotosConfig) -> AuthorizedSession:
    """Authorized requests session carrying the bearer token."""
    return AuthorizedSession(get_credentials(config))

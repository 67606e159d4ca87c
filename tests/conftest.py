"""
Pytest configuration and shared fixtures.
"""
import json
import threading
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import urlparse

import pytest
import yaml

from photos_folder_sync.client.transport import PhotosTransport

BASE_URL = "https://photos.test"


class FakeResponse:
    """Just enough of requests.Response for PhotosTransport."""

    def __init__(self, status_code: int = 200, body=None, text: Optional[str] = None, url: str = ""):
        self.status_code = status_code
        self.url = url
        if text is not None:
            self.text = text
        elif body is not None:
            self.text = json.dumps(body)
        else:
            self.text = ""
        self.content = self.text.encode('utf-8')

    def json(self):
        return json.loads(self.text)


class FakePhotosLibrary:
    """
    In-memory stand-in for the Photos Library REST API, used as the session
    behind a real PhotosTransport.

    Albums and media items are kept as wire-format dicts. Every request is
    recorded in ``calls`` as (method, path, kwargs).
    """

    def __init__(self):
        self.albums: List[Dict] = []
        self.album_items: Dict[str, List[str]] = {}
        self.media_items: Dict[str, Dict] = {}
        self.uploads: Dict[str, Dict] = {}
        self.calls: List[tuple] = []
        # path or (method, path) -> status code to return instead of handling the request
        self.failures: Dict[str, int] = {}
        # upload payloads that get an empty token back
        self.empty_upload_payloads = set()
        self.create_album_returns_empty = False
        self._counter = 0
        self._lock = threading.Lock()

    def _next(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter}"

    def add_album(self, title: str, filenames: Optional[List[str]] = None) -> Dict:
        album = {'id': self._next('album'), 'title': title, 'isWriteable': True}
        self.albums.append(album)
        self.album_items[album['id']] = []
        for filename in filenames or []:
            item = {'id': self._next('media'), 'filename': filename, 'mimeType': 'image/jpeg'}
            self.media_items[item['id']] = item
            self.album_items[album['id']].append(item['id'])
        return album

    def calls_to(self, path: str) -> List[tuple]:
        return [c for c in self.calls if c[1] == path]

    def album_filenames(self, album_id: str) -> List[str]:
        return [self.media_items[i]['filename'] for i in self.album_items.get(album_id, [])]

    def album_by_title(self, title: str) -> Dict:
        return next(a for a in self.albums if a['title'] == title)

    # requests.Session interface
    def request(self, method, url, timeout=None, **kwargs):
        with self._lock:
            return self._handle(method, url, **kwargs)

    def _handle(self, method, url, **kwargs):
        path = urlparse(url).path.lstrip("/")
        self.calls.append((method, path, kwargs))

        status = self.failures.get((method, path), self.failures.get(path))
        if status is not None:
            return FakeResponse(status, text="boom", url=url)

        if method == 'GET' and path == 'v1/albums':
            return self._list_albums(kwargs.get('params') or {}, url)
        if method == 'POST' and path == 'v1/albums':
            return self._create_album(kwargs['json'], url)
        if method == 'POST' and path == 'v1/uploads':
            return self._upload(kwargs['data'], kwargs['headers'], url)
        if method == 'POST' and path == 'v1/mediaItems:batchCreate':
            return self._batch_create(kwargs['json'], url)
        if method == 'POST' and path == 'v1/mediaItems:search':
            return self._search(kwargs['json'], url)
        if method == 'POST' and path.endswith(':batchAddMediaItems'):
            album_id = path[len('v1/albums/'):-len(':batchAddMediaItems')]
            return self._batch_add(album_id, kwargs['json'], url)
        return FakeResponse(404, text="not found", url=url)

    @staticmethod
    def _page(entries: List, page_size: int, page_token: Optional[str]):
        start = int(page_token or 0)
        page = entries[start:start + page_size]
        next_token = str(start + page_size) if start + page_size < len(entries) else None
        return page, next_token

    def _list_albums(self, params, url):
        page, next_token = self._page(self.albums, int(params['pageSize']), params.get('pageToken'))
        body = {'albums': page}
        if next_token:
            body['nextPageToken'] = next_token
        return FakeResponse(body=body, url=url)

    def _create_album(self, body, url):
        if self.create_album_returns_empty:
            return FakeResponse(text="", url=url)
        album = self.add_album(body['album']['title'])
        return FakeResponse(body=album, url=url)

    def _upload(self, data, headers, url):
        if data in self.empty_upload_payloads:
            return FakeResponse(text="", url=url)
        token = self._next('token')
        self.uploads[token] = {'data': data, 'headers': headers}
        return FakeResponse(text=token, url=url)

    def _batch_create(self, body, url):
        results = []
        for new_item in body['newMediaItems']:
            simple = new_item['simpleMediaItem']
            if simple['uploadToken'] not in self.uploads:
                results.append({
                    'uploadToken': simple['uploadToken'],
                    'status': {'code': 3, 'message': 'Invalid upload token'},
                })
                continue
            item = {'id': self._next('media'), 'filename': simple['fileName'], 'mimeType': 'image/jpeg'}
            self.media_items[item['id']] = item
            if body.get('albumId'):
                self.album_items[body['albumId']].append(item['id'])
            results.append({
                'uploadToken': simple['uploadToken'],
                'status': {'message': 'Success'},
                'mediaItem': item,
            })
        return FakeResponse(body={'newMediaItemResults': results}, url=url)

    def _search(self, body, url):
        ids = self.album_items.get(body['albumId'], [])
        items = [self.media_items[i] for i in ids]
        page, next_token = self._page(items, int(body['pageSize']), body.get('pageToken'))
        response = {'mediaItems': page} if page else {}
        if next_token:
            response['nextPageToken'] = next_token
        return FakeResponse(body=response, url=url)

    def _batch_add(self, album_id, body, url):
        items = self.album_items[album_id]
        for media_id in body['mediaItemIds']:
            if media_id not in items:
                items.append(media_id)
        return FakeResponse(body={}, url=url)


@pytest.fixture
def fake_library():
    """In-memory Photos Library API."""
    return FakePhotosLibrary()


@pytest.fixture
def transport(fake_library):
    """PhotosTransport talking to the fake library."""
    return PhotosTransport(fake_library, base_url=BASE_URL, timeout=5)


@pytest.fixture
def make_tree(tmp_path):
    """
    Build a sync root from a mapping.

    Top-level keys ending in '/' are directories (their values map file names
    to bytes); other keys are loose files in the root.
    """
    def _make_tree(layout: Dict, root: Optional[Path] = None) -> Path:
        root = root or (tmp_path / 'sync_root')
        root.mkdir(parents=True, exist_ok=True)
        for name, content in layout.items():
            if name.endswith('/'):
                directory = root / name.rstrip('/')
                directory.mkdir(exist_ok=True)
                for file_name, data in content.items():
                    (directory / file_name).write_bytes(data)
            else:
                (root / name).write_bytes(content)
        return root
    return _make_tree


@pytest.fixture
def sample_config(tmp_path) -> Dict:
    """Fixture providing a sample configuration dictionary."""
    return {
        'google_photos': {
            'credentials_file': str(tmp_path / 'credentials.json'),
            'timeout_seconds': 30,
            'exclude_non_app_created': True
        },
        'sync': {
            'root_dir': str(tmp_path / 'sync_root'),
            'batch_size': 50,
            'page_size': 50,
            'directory_workers': 1,
            'upload_workers': 2,
            'matcher': 'filename_contains',
            'include_root_files': True
        },
        'retry': {
            'max_retries': 2,
            'initial_delay': 0.0
        },
        'logging': {
            'level': 'INFO',
            'file': str(tmp_path / 'logs' / 'photos_sync.log')
        }
    }


@pytest.fixture
def config_file(tmp_path, sample_config) -> Path:
    """Create a temporary config.yaml file."""
    config_path = tmp_path / 'config.yaml'
    with open(config_path, 'w') as f:
        yaml.dump(sample_config, f)
    return config_path


@pytest.fixture
def credentials_file(tmp_path) -> Path:
    """Create a mock credentials.json file."""
    creds_file = tmp_path / 'credentials.json'
    creds_data = {
        'installed': {
            'client_id': 'test_client_id',
            'client_secret': 'test_client_secret',
            'auth_uri': 'https://accounts.google.com/o/oauth2/auth',
            'token_uri': 'https://oauth2.googleapis.com/token',
            'redirect_uris': ['http://localhost']
        }
    }
    with open(creds_file, 'w') as f:
        json.dump(creds_data, f)
    return creds_file

"""
Entities exchanged with the Photos Library API.

Every entity knows how to build itself from a decoded JSON body (``from_dict``)
and how to turn itself back into one (``to_dict``). Wire field names are the
API's camelCase names; absent optional fields are omitted on the way out so a
decoded body round-trips unchanged.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from photos_folder_sync.exceptions import DecodeError


def _require_mapping(data: Any, entity: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise DecodeError(f"Expected JSON object for {entity}, got {type(data).__name__}")
    return data


def _compact(body: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None."""
    return {key: value for key, value in body.items() if value is not None}


def _list_of(data: Dict[str, Any], key: str, entity: str) -> List[Any]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise DecodeError(f"Expected '{key}' to be a list in {entity}")
    return value


@dataclass
class Album:
    """A remote album."""
    id: str
    title: str = ""
    product_url: Optional[str] = None
    is_writeable: Optional[bool] = None
    media_items_count: Optional[str] = None
    cover_photo_base_url: Optional[str] = None
    cover_photo_media_item_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> 'Album':
        data = _require_mapping(data, "Album")
        if not data.get('id'):
            raise DecodeError("Album is missing 'id'")
        return cls(
            id=data['id'],
            title=data.get('title', ""),
            product_url=data.get('productUrl'),
            is_writeable=data.get('isWriteable'),
            media_items_count=data.get('mediaItemsCount'),
            cover_photo_base_url=data.get('coverPhotoBaseUrl'),
            cover_photo_media_item_id=data.get('coverPhotoMediaItemId'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'id': self.id,
            'title': self.title,
            'productUrl': self.product_url,
            'isWriteable': self.is_writeable,
            'mediaItemsCount': self.media_items_count,
            'coverPhotoBaseUrl': self.cover_photo_base_url,
            'coverPhotoMediaItemId': self.cover_photo_media_item_id,
        })

    @property
    def item_count(self) -> int:
        """mediaItemsCount is an int64 serialized as a string."""
        return int(self.media_items_count or 0)


@dataclass
class PhotoMetadata:
    """Camera details for photo media items."""
    camera_make: Optional[str] = None
    camera_model: Optional[str] = None
    focal_length: Optional[float] = None
    aperture_f_number: Optional[float] = None
    iso_equivalent: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any) -> 'PhotoMetadata':
        data = _require_mapping(data, "Photo")
        return cls(
            camera_make=data.get('cameraMake'),
            camera_model=data.get('cameraModel'),
            focal_length=data.get('focalLength'),
            aperture_f_number=data.get('apertureFNumber'),
            iso_equivalent=data.get('isoEquivalent'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'cameraMake': self.camera_make,
            'cameraModel': self.camera_model,
            'focalLength': self.focal_length,
            'apertureFNumber': self.aperture_f_number,
            'isoEquivalent': self.iso_equivalent,
        })


@dataclass
class MediaMetadata:
    creation_time: Optional[str] = None
    width: Optional[str] = None
    height: Optional[str] = None
    photo: Optional[PhotoMetadata] = None

    @classmethod
    def from_dict(cls, data: Any) -> 'MediaMetadata':
        data = _require_mapping(data, "MediaMetadata")
        photo = data.get('photo')
        return cls(
            creation_time=data.get('creationTime'),
            width=data.get('width'),
            height=data.get('height'),
            photo=PhotoMetadata.from_dict(photo) if photo is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'creationTime': self.creation_time,
            'width': self.width,
            'height': self.height,
            'photo': self.photo.to_dict() if self.photo is not None else None,
        })

    @property
    def creation_datetime(self) -> Optional[datetime]:
        if not self.creation_time:
            return None
        return datetime.fromisoformat(self.creation_time.replace("Z", "+00:00"))


@dataclass
class MediaItem:
    """A remote media item. Read-only once created by the service."""
    id: str
    filename: str = ""
    mime_type: Optional[str] = None
    base_url: Optional[str] = None
    product_url: Optional[str] = None
    description: Optional[str] = None
    media_metadata: Optional[MediaMetadata] = None

    @classmethod
    def from_dict(cls, data: Any) -> 'MediaItem':
        data = _require_mapping(data, "MediaItem")
        if not data.get('id'):
            raise DecodeError("MediaItem is missing 'id'")
        metadata = data.get('mediaMetadata')
        return cls(
            id=data['id'],
            filename=data.get('filename', ""),
            mime_type=data.get('mimeType'),
            base_url=data.get('baseUrl'),
            product_url=data.get('productUrl'),
            description=data.get('description'),
            media_metadata=MediaMetadata.from_dict(metadata) if metadata is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'id': self.id,
            'filename': self.filename,
            'mimeType': self.mime_type,
            'baseUrl': self.base_url,
            'productUrl': self.product_url,
            'description': self.description,
            'mediaMetadata': self.media_metadata.to_dict() if self.media_metadata is not None else None,
        })


@dataclass
class AlbumPage:
    albums: List[Album] = field(default_factory=list)
    next_page_token: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> 'AlbumPage':
        data = _require_mapping(data, "ListAlbumsResponse")
        return cls(
            albums=[Album.from_dict(a) for a in _list_of(data, 'albums', "ListAlbumsResponse")],
            next_page_token=data.get('nextPageToken') or None,
        )


@dataclass
class MediaPage:
    media_items: List[MediaItem] = field(default_factory=list)
    next_page_token: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> 'MediaPage':
        data = _require_mapping(data, "SearchMediaItemsResponse")
        return cls(
            media_items=[
                MediaItem.from_dict(m)
                for m in _list_of(data, 'mediaItems', "SearchMediaItemsResponse")
            ],
            next_page_token=data.get('nextPageToken') or None,
        )


@dataclass
class NewMediaItem:
    """One pending entry of a batchCreate request."""
    upload_token: str
    file_name: str
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'simpleMediaItem': {
                'uploadToken': self.upload_token,
                'fileName': self.file_name,
            },
            'description': self.description,
        }


@dataclass
class Status:
    code: Optional[int] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.code

    @classmethod
    def from_dict(cls, data: Any) -> 'Status':
        data = _require_mapping(data, "Status")
        return cls(code=data.get('code'), message=data.get('message'))


@dataclass
class NewMediaItemResult:
    upload_token: Optional[str] = None
    status: Status = field(default_factory=Status)
    media_item: Optional[MediaItem] = None

    @property
    def created(self) -> bool:
        return self.media_item is not None and self.status.ok

    @classmethod
    def from_dict(cls, data: Any) -> 'NewMediaItemResult':
        data = _require_mapping(data, "NewMediaItemResult")
        status = data.get('status')
        media_item = data.get('mediaItem')
        return cls(
            upload_token=data.get('uploadToken'),
            status=Status.from_dict(status) if status is not None else Status(),
            media_item=MediaItem.from_dict(media_item) if media_item is not None else None,
        )


def build_batch_create_body(album_id: Optional[str], items: List[NewMediaItem]) -> Dict[str, Any]:
    """Request body for mediaItems:batchCreate. albumId is omitted when empty."""
    body: Dict[str, Any] = {'newMediaItems': [item.to_dict() for item in items]}
    if album_id:
        body['albumId'] = album_id
    return body


def parse_batch_create_response(data: Any) -> List[NewMediaItemResult]:
    data = _require_mapping(data, "BatchCreateMediaItemsResponse")
    return [
        NewMediaItemResult.from_dict(r)
        for r in _list_of(data, 'newMediaItemResults', "BatchCreateMediaItemsResponse")
    ]

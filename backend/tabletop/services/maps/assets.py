"""Background image hosting.

The map subsystem only needs ``store(data, mimetype) -> url``. Two hosts are
provided: a local folder served by the app itself, and Cloudinary's unsigned
upload API.
"""

import base64
import os
import uuid

import requests
from werkzeug.utils import secure_filename

from tabletop.errors import UpstreamFailure

_EXTENSIONS = {
    'image/png': 'png',
    'image/jpeg': 'jpg',
    'image/webp': 'webp',
    'image/gif': 'gif',
}


class AssetHost:
    def store(self, data: bytes, mimetype: str) -> str:
        raise NotImplementedError


class LocalAssetHost(AssetHost):
    def __init__(self, folder: str, url_prefix: str = '/uploads'):
        self.folder = folder
        self.url_prefix = url_prefix.rstrip('/')

    def store(self, data: bytes, mimetype: str) -> str:
        ext = _EXTENSIONS.get(mimetype, 'bin')
        filename = secure_filename(f"{uuid.uuid4().hex}.{ext}")
        try:
            os.makedirs(self.folder, exist_ok=True)
            with open(os.path.join(self.folder, filename), 'wb') as fh:
                fh.write(data)
        except OSError as exc:
            raise UpstreamFailure(f'Could not store image: {exc}') from exc
        return f"{self.url_prefix}/{filename}"


class CloudinaryAssetHost(AssetHost):
    API_URL = 'https://api.cloudinary.com/v1_1/{cloud}/image/upload'

    def __init__(self, cloud_name: str, upload_preset: str, timeout: float = 15.0, session=None):
        self.cloud_name = cloud_name
        self.upload_preset = upload_preset
        self.timeout = timeout
        self.session = session or requests.Session()

    def store(self, data: bytes, mimetype: str) -> str:
        data_uri = f"data:{mimetype};base64,{base64.b64encode(data).decode('ascii')}"
        try:
            resp = self.session.post(
                self.API_URL.format(cloud=self.cloud_name),
                data={'file': data_uri, 'upload_preset': self.upload_preset},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            url = resp.json().get('secure_url')
        except (requests.RequestException, ValueError) as exc:
            raise UpstreamFailure(f'Image host upload failed: {exc}') from exc
        if not url:
            raise UpstreamFailure('Image host returned no URL')
        return url


def asset_host_from_config(config) -> AssetHost:
    kind = (config.get('ASSET_HOST') or 'local').lower()
    if kind == 'cloudinary':
        if not (config.get('CLOUDINARY_CLOUD_NAME') and config.get('CLOUDINARY_UPLOAD_PRESET')):
            raise RuntimeError('CLOUDINARY_CLOUD_NAME and CLOUDINARY_UPLOAD_PRESET are required')
        return CloudinaryAssetHost(
            config['CLOUDINARY_CLOUD_NAME'],
            config['CLOUDINARY_UPLOAD_PRESET'],
            timeout=float(config.get('ASSET_UPLOAD_TIMEOUT_SEC', 15)),
        )
    if kind == 'local':
        return LocalAssetHost(config['UPLOAD_FOLDER'])
    raise RuntimeError(f'Unknown ASSET_HOST: {kind}')

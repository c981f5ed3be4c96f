import logging
import os
import uuid
from pathlib import Path

from fastapi import APIRouter, Depends, File, Request, UploadFile

from crop_api.auth.dependencies import get_current_identity
from crop_api.auth.tokens import Identity
from crop_api.core.errors import NotFound, ValidationError

router = APIRouter(tags=['images'], dependencies=[Depends(get_current_identity)])

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.gif', '.webp'}
CONTENT_TYPE_EXTENSIONS = {
    'image/jpeg': '.jpg',
    'image/png': '.png',
    'image/gif': '.gif',
    'image/webp': '.webp',
}


def get_upload_dir(request: Request) -> Path:
    return Path(request.app.state.context.settings.upload_dir)


def get_max_upload_bytes(request: Request) -> int:
    return request.app.state.context.settings.max_upload_bytes


def pick_extension(filename: str | None, content_type: str | None) -> str:
    suffix = Path(filename or '').suffix.lower()
    if suffix in ALLOWED_EXTENSIONS:
        return suffix
    return CONTENT_TYPE_EXTENSIONS.get((content_type or '').lower(), '.img')


def resolve_stored_file(upload_dir: Path, filename: str) -> Path:
    if not filename or filename in {'.', '..'} or '/' in filename or '\\' in filename or os.sep in filename:
        raise ValidationError('Invalid file name')
    return upload_dir / filename


@router.post('/upload')
def upload_image(
    image: UploadFile | None = File(default=None),
    identity: Identity = Depends(get_current_identity),
    upload_dir: Path = Depends(get_upload_dir),
    max_bytes: int = Depends(get_max_upload_bytes),
):
    if image is None or not image.filename:
        raise ValidationError('No file uploaded')
    if not (image.content_type or '').startswith('image/'):
        raise ValidationError('Only image files are allowed')

    content = image.file.read(max_bytes + 1)
    if not content:
        raise ValidationError('No file uploaded')
    if len(content) > max_bytes:
        raise ValidationError(f'File too large. Maximum size is {max_bytes} bytes')

    stored_name = f'image-{uuid.uuid4().hex}{pick_extension(image.filename, image.content_type)}'
    upload_dir.mkdir(parents=True, exist_ok=True)
    (upload_dir / stored_name).write_bytes(content)
    logger.info('User id=%s uploaded %s (%d bytes)', identity.user_id, stored_name, len(content))

    return {'msg': 'File uploaded successfully', 'filePath': f'/uploads/{stored_name}'}


@router.delete('/{filename}')
def delete_image(
    filename: str,
    identity: Identity = Depends(get_current_identity),
    upload_dir: Path = Depends(get_upload_dir),
):
    file_path = resolve_stored_file(upload_dir, filename)
    if not file_path.is_file():
        raise NotFound('File not found')

    file_path.unlink()
    logger.info('User id=%s deleted %s', identity.user_id, filename)
    return {'msg': 'File deleted successfully'}

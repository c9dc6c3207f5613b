"""
File upload storage for KYC documents and profile images
"""

import os
import logging

from core import config
from utils.helpers import SecurityUtils
from utils.validators import BankingValidator
from utils.exceptions import ValidationException

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('png', 'jpg', 'jpeg', 'gif')


def _store(subdir: str, filename: str, content: bytes) -> str:
    extension = filename.rsplit('.', 1)[-1].lower()
    stored_name = f"{SecurityUtils.generate_file_token()}.{extension}"
    directory = os.path.join(config.UPLOAD_DIR, subdir) if subdir else config.UPLOAD_DIR
    os.makedirs(directory, exist_ok=True)

    with open(os.path.join(directory, stored_name), 'wb') as fh:
        fh.write(content)

    relative = '/'.join(part for part in ('uploads', subdir, stored_name) if part)
    logger.info(f"Stored upload {filename!r} as {relative}")
    return f"/{relative}"


def save_kyc_document(filename: str, content: bytes) -> str:
    """Persist a KYC document and return the path recorded in kyc_documents"""
    BankingValidator.validate_kyc_filename(filename)
    return _store('kyc', filename, content)


def save_profile_image(filename: str, content: bytes) -> str:
    """Persist a profile image and return the stored file name"""
    extension = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
    if extension not in IMAGE_EXTENSIONS:
        raise ValidationException(f"Profile image must be one of: {', '.join(IMAGE_EXTENSIONS)}")
    return _store('', filename, content).rsplit('/', 1)[-1]


def resolve_path(stored_path: str) -> str:
    """Map a stored '/uploads/...' path (or bare image name) to a local file path"""
    if not stored_path:
        return ''
    relative = stored_path.lstrip('/')
    if relative.startswith('uploads/'):
        relative = relative[len('uploads/'):]
    return os.path.join(config.UPLOAD_DIR, relative)

"""
Flask routes for the Photo Booth
JSON endpoints the presentation layer drives the booth through
"""

import asyncio

from flask import Blueprint, Response, current_app, jsonify, request
from loguru import logger

from .capture import source_from_data_url, source_from_upload
from .errors import (
    PhotoBoothError, ValidationError, CaptureError,
    create_error_recovery_suggestions
)
from .lifecycle import LifecycleManager


bp = Blueprint('booth', __name__, url_prefix='/api')


def get_booth() -> LifecycleManager:
    return current_app.extensions['photobooth']


def state_response(status: int = 200, **extra):
    payload = get_booth().snapshot().to_dict()
    payload.update(extra)
    return jsonify(payload), status


@bp.errorhandler(PhotoBoothError)
def handle_booth_error(error: PhotoBoothError):
    logger.warning(f"{error.__class__.__name__}: {error.message}")
    payload = error.to_dict()
    payload['suggestions'] = create_error_recovery_suggestions(error)
    status = 400 if isinstance(error, (ValidationError, CaptureError)) else 500
    return jsonify(payload), status


@bp.route('/state', methods=['GET'])
def state():
    return state_response()


@bp.route('/uploads', methods=['POST'])
def upload_photos():
    """Add every uploaded file to the pending tray"""
    files = request.files.getlist('photos')
    if not files:
        raise ValidationError("No photo files uploaded")

    booth = get_booth()
    added = []
    for upload in files:
        source = source_from_upload(upload,
                                    current_app.config['ALLOWED_EXTENSIONS'],
                                    current_app.config['MAX_UPLOAD_SIZE'])
        booth.add_pending(source)
        added.append(source.id)

    return state_response(201, added=added)


@bp.route('/captures', methods=['POST'])
def capture_photo():
    """Add a camera frame posted as a data URL"""
    body = request.get_json(silent=True) or {}
    source = source_from_data_url(body.get('image'), current_app.config['MAX_UPLOAD_SIZE'])
    get_booth().add_pending(source)
    return state_response(201, added=[source.id])


@bp.route('/uploads/<item_id>', methods=['PATCH'])
def update_caption(item_id):
    body = request.get_json(silent=True) or {}
    caption = str(body.get('caption') or '')[:current_app.config['CAPTION_MAX_LENGTH']]
    get_booth().update_caption(item_id, caption)
    return state_response()


@bp.route('/uploads/<item_id>', methods=['DELETE'])
def remove_upload(item_id):
    get_booth().remove_pending(item_id)
    return state_response()


@bp.route('/develop', methods=['POST'])
def develop():
    """Run every pending photo through the camera"""
    booth = get_booth()
    result = asyncio.run(booth.develop())
    status = 409 if result.status == 'busy' else 200

    extra = {'develop': result.to_dict()}
    if result.failed:
        extra['suggestions'] = create_error_recovery_suggestions(
            None, {'failed_count': len(result.failed), 'queue_depth': booth.queue_depth}
        )
    return state_response(status, **extra)


@bp.route('/release', methods=['POST'])
def release():
    """Eject the next print onto the surface"""
    body = request.get_json(silent=True) or {}
    try:
        width = float(body['surface_width']) if body.get('surface_width') else None
        height = float(body['surface_height']) if body.get('surface_height') else None
    except (TypeError, ValueError) as e:
        raise ValidationError("Surface size must be numeric", details={'body': body}) from e

    item = get_booth().release(width, height)
    return state_response(released=item.to_dict() if item else None)


@bp.route('/placed/<item_id>/front', methods=['POST'])
def bring_to_front(item_id):
    get_booth().bring_to_front(item_id)
    return state_response()


@bp.route('/placed/<item_id>/scale', methods=['POST'])
def rescale(item_id):
    body = request.get_json(silent=True) or {}
    try:
        delta = float(body.get('delta', 0))
    except (TypeError, ValueError) as e:
        raise ValidationError("Scale delta must be numeric", details={'delta': body.get('delta')}) from e

    get_booth().rescale(item_id, delta)
    return state_response()


@bp.route('/placed/<item_id>', methods=['PATCH'])
def move_placed(item_id):
    body = request.get_json(silent=True) or {}
    try:
        x, y = float(body['x']), float(body['y'])
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError("Position needs numeric x and y", details={'body': body}) from e

    get_booth().move_placed(item_id, x, y)
    return state_response()


@bp.route('/placed/<item_id>/export', methods=['POST'])
def set_export_excluded(item_id):
    """Keep a print on the desk but out of export snapshots"""
    body = request.get_json(silent=True) or {}
    excluded = body.get('exclude', True)
    if not isinstance(excluded, bool):
        raise ValidationError("exclude must be true or false", details={'exclude': excluded})

    get_booth().set_export_excluded(item_id, excluded)
    return state_response()


@bp.route('/placed/<item_id>', methods=['DELETE'])
def remove_placed(item_id):
    get_booth().remove_placed(item_id)
    return state_response()


@bp.route('/placed/<item_id>/image.png', methods=['GET'])
def placed_image(item_id):
    item = get_booth().get_placed(item_id)
    if item is None:
        return jsonify({'error_type': 'NotFound', 'message': f"No placed print {item_id}"}), 404
    return Response(item.artifact.png, mimetype='image/png')


@bp.route('/export', methods=['GET'])
def export_listing():
    """Everything an export snapshot should capture, in stacking order"""
    items = get_booth().export_items()
    return jsonify({'items': [item.to_dict(include_bitmap=True) for item in items]})

"""
Flask views for the Utility Billing Report application.

JSON endpoints only: upload a billing export, then request monthly or annual
reports for it. The normalized upload is kept in the application cache under
an upload id, so switching report mode does not re-read the file.
"""
from flask import Blueprint, request, jsonify
from werkzeug.utils import secure_filename
import logging
import traceback
import uuid

from billing_engine import (
    ReportSession,
    ReportMode,
    SourceReadError,
    MissingColumnsError,
    list_schemas,
    load_source,
    validate_upload,
)
from config import config

logger = logging.getLogger(__name__)
bp = Blueprint('main', __name__)

SESSION_KEY_PREFIX = 'upload:'


def _get_cache():
    from app import cache
    return cache


def _error(message: str, status: int, **extra):
    body = {'error': message}
    body.update(extra)
    return jsonify(body), status


@bp.route('/health')
def health():
    return jsonify({'status': 'healthy'})


@bp.route('/api/services')
def services():
    """Supported service types and the columns each export must carry."""
    return jsonify([
        {
            'service_type': schema.key,
            'name': schema.name,
            'required_columns': list(schema.required_source_columns),
            'report_fields': [f.value for f in schema.report_fields],
        }
        for schema in list_schemas()
    ])


@bp.route('/api/uploads', methods=['POST'])
def upload():
    """Read, validate and normalize an uploaded billing export."""
    if 'file' not in request.files:
        return _error('No se cargó ningún archivo', 400)

    file = request.files['file']
    service_type = request.form.get('service_type', config.report.default_service_type)
    filename = secure_filename(file.filename or '')

    try:
        data = file.read()
        validate_upload(file.filename, len(data), file.mimetype)
        source = load_source(data, filename=filename, mimetype=file.mimetype)
        session = ReportSession.open(source, service_type)
    except MissingColumnsError as e:
        logger.info(f"[UPLOAD] Rejected {filename} for {service_type}: missing {e.missing}")
        return _error(str(e), 422, missing=e.missing, service_type=e.service_type)
    except SourceReadError as e:
        logger.info(f"[UPLOAD] Could not read {filename}: {e}")
        return _error(str(e), 400)
    except Exception as e:
        logger.error(f"[UPLOAD] Unexpected error processing {filename}: {e}\n{traceback.format_exc()}")
        return _error('Error al procesar el archivo.', 500)

    upload_id = uuid.uuid4().hex
    _get_cache().set(
        SESSION_KEY_PREFIX + upload_id,
        session.to_dict(),
        timeout=config.report.session_timeout,
    )
    logger.info(f"[UPLOAD] {filename}: {session.row_count} rows as {session.schema.name} (upload_id={upload_id})")

    body = session.summary()
    body['upload_id'] = upload_id
    return jsonify(body), 201


@bp.route('/api/uploads/<upload_id>/report')
def report(upload_id: str):
    """Aggregate a cached upload in the requested mode."""
    cached = _get_cache().get(SESSION_KEY_PREFIX + upload_id)
    if cached is None:
        return _error('No hay datos para el identificador de carga indicado', 404)

    mode = request.args.get('mode', config.report.default_mode)
    try:
        mode = ReportMode(mode)
    except ValueError:
        return _error(f"Tipo de reporte no válido: {mode}", 400,
                      allowed=[m.value for m in ReportMode])

    session = ReportSession.from_dict(cached)
    rows = session.report(mode)
    return jsonify({
        'upload_id': upload_id,
        'service_type': session.schema.key,
        'mode': mode.value,
        'rows': rows,
    })

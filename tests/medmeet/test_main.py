import asyncio
import json
from types import SimpleNamespace

from fastapi.routing import APIRoute

from medmeet import main
from medmeet.core import errors
from medmeet.routes import doctor_routes


def _fake_request(path: str = '/doctors/appointments'):
    return SimpleNamespace(method='POST', url=SimpleNamespace(path=path))


def test_root_reports_running() -> None:
    assert main.root() == {'status': 'MedMeet API Running'}


def test_error_handler_maps_conflict_to_409() -> None:
    response = asyncio.run(
        main.medmeet_error_handler(_fake_request(), errors.ConflictError('This time slot is already booked')),
    )

    assert response.status_code == 409
    assert json.loads(response.body) == {'detail': 'This time slot is already booked'}


def test_error_handler_hides_storage_details() -> None:
    try:
        raise errors.StorageError() from RuntimeError('password authentication failed for user "medmeet"')
    except errors.StorageError as exc:
        response = asyncio.run(main.medmeet_error_handler(_fake_request(), exc))

    assert response.status_code == 503
    assert json.loads(response.body) == {'detail': 'Database unavailable. Please try again later.'}


def test_routes_resolve_and_static_appointment_paths_precede_doctor_id() -> None:
    assert main.app.url_path_for('list_my_appointments') == '/doctors/appointments'
    assert main.app.url_path_for('list_available_slots', doctor_id=7) == '/doctors/7/available-slots'
    assert main.app.url_path_for('upload_photo') == '/auth/upload-photo'

    paths = [route.path for route in doctor_routes.router.routes if isinstance(route, APIRoute)]
    assert paths.index('/appointments') < paths.index('/{doctor_id}')


def test_app_debug_follows_config() -> None:
    assert main.app.debug is main.config.DEBUG

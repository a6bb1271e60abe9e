"""
Pytest configuration and fixtures for Nexo Greencycle backend tests
"""
import pytest
import os
from datetime import date, timedelta

from server import create_app
from models import db, User, PickupRequest
from auth_routes import generate_token
from socket_events import socketio


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing"""
    os.environ['FLASK_ENV'] = 'testing'
    app = create_app('testing')
    return app


@pytest.fixture(autouse=True)
def database(app):
    """Fresh tables for every test"""
    with app.app_context():
        db.create_all()
        yield db
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client"""
    return app.test_client()


def _make_user(email, password, **fields):
    user = User(email=email, **fields)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def _headers_for(user):
    return {
        'Authorization': 'Bearer {}'.format(generate_token(user.id)),
        'Content-Type': 'application/json'
    }


@pytest.fixture
def producer(database):
    """A waste producer (household/business requesting pickups)"""
    return _make_user(
        'jane@example.com', 'GreenPass123',
        full_name='Jane Wanjiku',
        phone='0712345678',
        location='Nairobi',
        user_type='producer',
    )


@pytest.fixture
def company_user(database):
    """An account acting for GreenCycle Ltd (catalog company 1)"""
    return _make_user(
        'ops@greencycle.co.ke', 'CompanyPass123',
        full_name='GreenCycle Operations',
        phone='0722000111',
        location='Nairobi',
        user_type='recycling',
        company_id=1,
        license_number='NEMA/WM/0001',
    )


@pytest.fixture
def other_company_user(database):
    """An account acting for CleanCity Recyclers (catalog company 3)"""
    return _make_user(
        'ops@cleancity.co.ke', 'CompanyPass123',
        full_name='CleanCity Operations',
        user_type='recycling',
        company_id=3,
    )


@pytest.fixture
def outsider(database):
    """A producer with no relation to the test pickup"""
    return _make_user(
        'peter@example.com', 'OutsiderPass123',
        full_name='Peter Otieno',
        location='Mombasa',
        user_type='producer',
    )


@pytest.fixture
def auth_headers(producer):
    """Bearer headers for the producer"""
    return _headers_for(producer)


@pytest.fixture
def company_headers(company_user):
    """Bearer headers for the GreenCycle Ltd account"""
    return _headers_for(company_user)


@pytest.fixture
def other_company_headers(other_company_user):
    return _headers_for(other_company_user)


@pytest.fixture
def outsider_headers(outsider):
    return _headers_for(outsider)


@pytest.fixture
def make_pickup(producer):
    """Factory for pickup requests owned by the producer"""
    def _make(company_id=1, company_name='GreenCycle Ltd', status='pending', days_ahead=3, user=None):
        pickup = PickupRequest(
            user_id=(user or producer).id,
            company_id=company_id,
            company_name=company_name,
            waste_type='recyclable',
            waste_description='Plastic bottles and cardboard boxes',
            location='Westlands, Nairobi',
            preferred_date=date.today() + timedelta(days=days_ahead),
            preferred_time='morning',
            status=status,
        )
        db.session.add(pickup)
        db.session.commit()
        return pickup
    return _make


@pytest.fixture
def test_pickup(make_pickup):
    """A pending pickup from the producer to GreenCycle Ltd"""
    return make_pickup()


@pytest.fixture
def socket_client_factory(app, client):
    """Socket.IO test clients, disconnected after the test"""
    clients = []

    def _make():
        socket_client = socketio.test_client(app, flask_test_client=client)
        clients.append(socket_client)
        return socket_client

    yield _make

    for socket_client in clients:
        if socket_client.is_connected():
            socket_client.disconnect()


@pytest.fixture
def received_events():
    """Payloads of every named event a socket client has received so far"""
    def _received(socket_client, name):
        return [item["args"][0] for item in socket_client.get_received() if item["name"] == name]
    return _received

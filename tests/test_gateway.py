import pytest
from sqlalchemy.exc import OperationalError

from conftest import make_student
from demo import DEMO_TEACHER_ID, canned_records
from errors import BatchWriteFailed, StoreUnavailable
from gateway import DemoGateway, StoreGateway
from models import Homework, Student, Teacher


class BrokenSession:
    """Session stand-in whose every call fails like a lost connection."""

    def __init__(self):
        self.rolled_back = False

    def get(self, *args, **kwargs):
        raise OperationalError('SELECT', {}, Exception('connection lost'))

    def rollback(self):
        self.rolled_back = True


def test_store_failure_becomes_retryable_error():
    session = BrokenSession()
    gateway = StoreGateway(session=session)
    with pytest.raises(StoreUnavailable) as excinfo:
        gateway.get(Student, 'abc')
    assert session.rolled_back
    assert excinfo.value.extra() == {'retryable': True}
    assert 'Please try again' in excinfo.value.detail


def test_batch_write_is_all_or_nothing(app):
    with app.app_context():
        gateway = StoreGateway()
        batch = [
            make_student(grade='5', roll_number='1'),
            make_student(grade='5', roll_number='1', name='Duplicate Roll'),
        ]
        with pytest.raises(BatchWriteFailed) as excinfo:
            gateway.save_all(batch)
        assert excinfo.value.failed_index == 1
        assert excinfo.value.size == 2
        assert gateway.find(Student, grade='5') == []


def test_batch_write_returns_ids_in_order(app):
    with app.app_context():
        gateway = StoreGateway()
        batch = [make_student(grade='6', roll_number=str(n)) for n in (1, 2, 3)]
        ids = gateway.save_all(batch)
        assert ids == [student.id for student in batch]
        assert len(gateway.find(Student, grade='6')) == 3


def test_demo_gateway_serves_canned_records():
    gateway = DemoGateway(canned_records())
    assert gateway.get(Teacher, DEMO_TEACHER_ID).name == 'DEMO TEACHER'
    assert len(gateway.find(Student, grade='10')) == 10
    latest = gateway.find(Homework, order_by='timestamp', descending=True, limit=1)
    assert latest[0].id == 'homework1'


def test_demo_gateway_acknowledges_writes_without_keeping_them():
    gateway = DemoGateway(canned_records())
    student = make_student(grade='10', roll_number='99')
    record_id = gateway.save(student)
    assert record_id.startswith('demo-students-')
    assert gateway.first(Student, roll_number='99') is None

    existing = gateway.get(Student, 'student1')
    gateway.delete(existing)
    assert gateway.get(Student, 'student1') is not None

"""Flask application serving the teacher pages of the school as a JSON API.

Every handler resolves the acting teacher explicitly (see
``session_context.py``) and hands that context to the policy functions, which
re-check scope before each write.

Endpoints:

* ``POST /api/auth/login`` / ``POST /api/auth/demo`` / ``POST /api/auth/logout``
* ``GET /api/dashboard`` – profile, students in scope, staff directory.
* ``GET /api/scope`` – grades and subjects the teacher may act on.
* ``POST /api/students`` and ``GET|PUT|DELETE /api/students/edit?id=``
* ``POST /api/teachers`` and ``GET|PUT|DELETE /api/teachers/edit?id=``
* ``GET|POST /api/teacher-assignments?teacherId=`` and
  ``PUT|DELETE /api/teacher-assignments/<id>?teacherId=``
* ``GET|POST /api/attendance`` and ``PUT /api/attendance/bulk``
* ``GET|POST /api/class-routines``
* ``GET|POST /api/homework``
* ``GET /api/subject-panel``, ``POST /api/marks-entry?studentId=&examTermId=``,
  ``GET /api/student-result?id=``

Pages that work on a specific record need its id in the query string; without
it the client is redirected to the dashboard. Errors are returned as
problem-details JSON.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

from flask import Flask, g, jsonify, redirect, request, send_from_directory, url_for
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

import assignments as assignment_service
import homework as homework_service
import results as results_service
import students as student_service
import teachers as teacher_service
from app_logging import configure_logging, get_logger
from attendance import AttendanceDay, load_day_attendance, save_attendance, save_attendance_batch
from config import Config
from errors import PermissionDenied, RecordNotFound, SchoolError, ValidationFailed
from gateway import StoreGateway
from models import Student, db
from request_logging import init_request_logging
from routines import load_day, parse_day, save_day, validate_grade_day
from scope import authorize_routine_write, authorize_subject_write, scope_for
from session_context import resolve_session, sign_in, sign_out, start_demo
from students import students_of_grade
from validation import text, validate_attendance

_logger = get_logger('school.app')


def _payload() -> Dict[str, Any]:
    """Submitted fields from a JSON body or a (multipart) form."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    data = request.form.to_dict()
    if 'roles' in request.form:
        data['roles'] = request.form.getlist('roles')
    return data


def _problem(status: int, title: str, detail: str, **extra: Any):
    body = {
        'type': 'about:blank',
        'title': title,
        'status': status,
        'detail': detail,
        'request_id': getattr(g, 'request_id', None),
    }
    body.update(extra)
    response = jsonify(body)
    response.status_code = status
    response.mimetype = 'application/problem+json'
    return response


def _to_dashboard():
    return redirect(url_for('dashboard'))


def create_app(overrides: Optional[Dict[str, Any]] = None) -> Flask:
    """Application factory used by the server, the seed script and the tests.

    ``overrides`` is applied on top of :class:`config.Config` before the
    extensions are initialised, so tests can point at their own database.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    configure_logging()
    init_request_logging(app)
    db.init_app(app)

    if app.config.get('AUTO_CREATE_TABLES'):
        with app.app_context():
            try:
                db.create_all()
            except SQLAlchemyError as exc:
                # The health check keeps answering; store-backed pages report 503.
                _logger.warning('Database unavailable during table creation: %s', exc)

    @app.route('/health')
    def healthcheck():
        return jsonify({'status': 'ok'}), 200

    @app.route('/uploads/<path:filename>')
    def uploaded_file(filename):
        return send_from_directory(app.config['UPLOAD_FOLDER'], filename)

    # -- sign-in ---------------------------------------------------------

    @app.route('/api/auth/login', methods=['POST'])
    def login():
        data = _payload()
        teacher = teacher_service.authenticate(StoreGateway(), text(data, 'email'), text(data, 'password'))
        sign_in(teacher)
        _logger.info('teacher signed in', extra={'teacher_id': teacher.id})
        return jsonify({'teacher': teacher.to_dict(), 'redirect': url_for('dashboard')})

    @app.route('/api/auth/demo', methods=['POST'])
    def demo_login():
        start_demo()
        return jsonify({'demo_mode': True, 'redirect': url_for('dashboard')})

    @app.route('/api/auth/logout', methods=['POST'])
    def logout():
        sign_out()
        return jsonify({'message': 'Signed out', 'redirect': url_for('login')})

    # -- dashboard and scope ---------------------------------------------

    @app.route('/api/dashboard', methods=['GET'])
    def dashboard():
        ctx = resolve_session()
        return jsonify(teacher_service.dashboard(ctx))

    @app.route('/api/scope', methods=['GET'])
    def api_get_scope():
        ctx = resolve_session()
        return jsonify(scope_for(ctx).to_dict())

    # -- students --------------------------------------------------------

    @app.route('/api/students', methods=['POST'])
    def api_create_student():
        ctx = resolve_session()
        student = student_service.create_student(ctx, _payload(), request.files.get('profile_picture'))
        return jsonify(student.to_dict()), 201

    @app.route('/api/students/edit', methods=['GET', 'PUT', 'DELETE'])
    def api_edit_student():
        student_id = request.args.get('id')
        if not student_id:
            return _to_dashboard()
        ctx = resolve_session()
        if request.method == 'GET':
            return jsonify(student_service.get_student_for_edit(ctx, student_id).to_dict())
        if request.method == 'DELETE':
            student_service.delete_student(ctx, student_id)
            return jsonify({'message': 'Student deleted successfully', 'redirect': url_for('dashboard')})
        student = student_service.update_student(ctx, student_id, _payload(), request.files.get('profile_picture'))
        return jsonify(student.to_dict())

    # -- teachers --------------------------------------------------------

    @app.route('/api/teachers', methods=['POST'])
    def api_create_teacher():
        ctx = resolve_session()
        teacher = teacher_service.create_teacher(ctx, _payload(), request.files.get('profile_image'))
        return jsonify(teacher.to_dict()), 201

    @app.route('/api/teachers/edit', methods=['GET', 'PUT', 'DELETE'])
    def api_edit_teacher():
        teacher_id = request.args.get('id')
        if not teacher_id:
            return _to_dashboard()
        ctx = resolve_session()
        if request.method == 'GET':
            return jsonify(teacher_service.get_teacher_for_edit(ctx, teacher_id).to_dict())
        if request.method == 'DELETE':
            teacher_service.delete_teacher(ctx, teacher_id)
            return jsonify({'message': 'Teacher deleted successfully', 'redirect': url_for('dashboard')})
        teacher = teacher_service.update_teacher(ctx, teacher_id, _payload(), request.files.get('profile_image'))
        return jsonify(teacher.to_dict())

    # -- teacher assignments ---------------------------------------------

    @app.route('/api/teacher-assignments', methods=['GET', 'POST'])
    def api_teacher_assignments():
        teacher_id = request.args.get('teacherId')
        if not teacher_id:
            return _to_dashboard()
        ctx = resolve_session()
        if request.method == 'POST':
            assignment = assignment_service.add_assignment(ctx, teacher_id, _payload())
            return jsonify(assignment.to_dict()), 201
        teacher, rows = assignment_service.list_assignments(ctx, teacher_id)
        return jsonify({'teacher': teacher.to_dict(), 'assignments': [row.to_dict() for row in rows]})

    @app.route('/api/teacher-assignments/<assignment_id>', methods=['PUT', 'DELETE'])
    def api_teacher_assignment(assignment_id):
        teacher_id = request.args.get('teacherId')
        if not teacher_id:
            return _to_dashboard()
        ctx = resolve_session()
        if request.method == 'DELETE':
            assignment_service.delete_assignment(ctx, teacher_id, assignment_id)
            return jsonify({'message': 'Assignment deleted successfully'})
        assignment = assignment_service.update_assignment(ctx, teacher_id, assignment_id, _payload())
        return jsonify(assignment.to_dict())

    # -- attendance ------------------------------------------------------

    @app.route('/api/attendance', methods=['GET'])
    def api_get_attendance():
        ctx = resolve_session()
        scope = scope_for(ctx)
        grade = request.args.get('grade') or (scope.grades[0] if scope.grades else None)
        if not grade or not scope.allows_grade(grade):
            raise PermissionDenied("You don't have access to this grade")
        subjects = scope.subjects_for(grade)
        subject = request.args.get('subject') or (subjects[0] if subjects else None)
        authorize_subject_write(scope, grade, subject)

        day = AttendanceDay.parse(bs_date=request.args.get('bs_date'), ad_date=request.args.get('date'))
        students = students_of_grade(ctx.gateway, grade)
        return jsonify({
            'grades': list(scope.grades),
            'subjects': list(subjects),
            'grade': grade,
            'subject': subject,
            'day': day.to_dict(),
            'students': load_day_attendance(ctx.gateway, students, day, subject),
        })

    @app.route('/api/attendance', methods=['POST'])
    def api_post_attendance():
        ctx = resolve_session()
        data = _payload()
        validate_attendance(data)
        student = ctx.gateway.get(Student, text(data, 'student_id'))
        if student is None:
            raise RecordNotFound('Student not found')
        subject = text(data, 'subject')
        authorize_subject_write(scope_for(ctx), student.grade, subject)

        day = AttendanceDay.parse(bs_date=text(data, 'bs_date'), ad_date=text(data, 'date'))
        record = save_attendance(
            ctx.gateway,
            day.key(student.id, subject),
            text(data, 'status'),
            ctx.teacher,
            student.grade,
            existing_id=text(data, 'attendance_id') or None,
        )
        return jsonify(record.to_dict())

    @app.route('/api/attendance/bulk', methods=['PUT'])
    def api_put_attendance_bulk():
        ctx = resolve_session()
        data = _payload()
        validate_attendance(data, bulk=True)
        grade, subject = text(data, 'grade'), text(data, 'subject')
        authorize_subject_write(scope_for(ctx), grade, subject)

        day = AttendanceDay.parse(bs_date=text(data, 'bs_date'), ad_date=text(data, 'date'))
        enrolled = {student.id for student in students_of_grade(ctx.gateway, grade)}
        entries = []
        for row in data.get('records') or []:
            if not isinstance(row, dict):
                raise ValidationFailed({'records': 'Each record needs a student_id and a status'})
            student_id = text(row, 'student_id')
            if student_id not in enrolled:
                raise ValidationFailed({'records': f"Student {student_id} is not in grade {grade}"})
            entries.append((student_id, text(row, 'status')))
        if not entries:
            raise ValidationFailed({'records': 'No attendance records submitted'})

        saved = save_attendance_batch(ctx.gateway, day, subject, entries, ctx.teacher, grade)
        return jsonify({
            'message': 'Attendance saved successfully',
            'day': day.to_dict(),
            'records': [record.to_dict() for record in saved],
        })

    # -- class routines --------------------------------------------------

    @app.route('/api/class-routines', methods=['GET'])
    def api_get_class_routines():
        ctx = resolve_session()
        grade = request.args.get('grade', '').strip()
        day = request.args.get('day', 'Sunday').strip()
        validate_grade_day(grade, day)
        return jsonify({'grade': grade, 'day': day, 'routine': load_day(ctx.gateway, grade, day)})

    @app.route('/api/class-routines', methods=['POST'])
    def api_post_class_routines():
        ctx = resolve_session()
        data = _payload()
        grade, day = text(data, 'grade'), text(data, 'day')
        validate_grade_day(grade, day)
        authorize_routine_write(ctx, grade)
        entries = parse_day(data)
        ids = save_day(ctx.gateway, grade, day, entries)
        _logger.info('class routine saved', extra={'grade': grade, 'day': day, 'blocks': len(ids)})
        return jsonify({'message': 'Class routine saved successfully!', 'ids': ids}), 201

    # -- homework --------------------------------------------------------

    @app.route('/api/homework', methods=['GET'])
    def api_get_homework():
        ctx = resolve_session()
        return jsonify([item.to_dict() for item in homework_service.list_homework(ctx)])

    @app.route('/api/homework', methods=['POST'])
    def api_post_homework():
        ctx = resolve_session()
        item = homework_service.add_homework(ctx, _payload(), request.files.get('attachment'))
        return jsonify(item.to_dict()), 201

    # -- results ---------------------------------------------------------

    @app.route('/api/subject-panel', methods=['GET'])
    def api_subject_panel():
        ctx = resolve_session()
        panel = results_service.subject_panel(
            ctx, request.args.get('grade'), request.args.get('examTermId'))
        return jsonify(panel)

    @app.route('/api/marks-entry', methods=['POST'])
    def api_marks_entry():
        student_id = request.args.get('studentId')
        exam_term_id = request.args.get('examTermId')
        if not student_id or not exam_term_id:
            return _to_dashboard()
        ctx = resolve_session()
        student = results_service.enter_marks(ctx, student_id, exam_term_id, _payload())
        return jsonify(student.to_dict())

    @app.route('/api/student-result', methods=['GET'])
    def api_student_result():
        student_id = request.args.get('id')
        if not student_id:
            return _to_dashboard()
        ctx = resolve_session()
        return jsonify(results_service.student_result(ctx, student_id))

    # -- errors ----------------------------------------------------------

    @app.errorhandler(SchoolError)
    def handle_school_error(error: SchoolError):
        if error.status >= 500:
            _logger.error('request failed: %s', error.detail, extra={'error_type': type(error).__name__})
        else:
            _logger.info('request refused: %s', error.detail, extra={'error_type': type(error).__name__})
        return _problem(error.status, error.title, error.detail, **error.extra())

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return _problem(error.code or 500, error.name, error.description or error.name)

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(error: SQLAlchemyError):
        db.session.rollback()
        _logger.error('Database operation failed: %s', error, exc_info=error)
        return _problem(503, 'Store Unavailable', 'Database temporarily unavailable', retryable=True)

    return app


app = create_app()

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 8000))
    app.run(host='0.0.0.0', port=port, debug=True)

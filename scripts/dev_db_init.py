# scripts/dev_db_init.py
from datetime import datetime

from sqlalchemy import insert

from app import create_app
from extensions import db
from models import (
    Department, Course, Instructor, OfficeAssignment,
    Enrollment, User, UserRole, course_instructor
)

def seed_minimal():
    cs = Department.query.filter_by(name="Computer Science").first()
    if not cs:
        cs = Department(name="Computer Science", budget=100000, start_date=datetime(2020, 9, 1))
        db.session.add(cs)
    db.session.flush()

    algo = Course.query.filter_by(title="Algorithms").first()
    if not algo:
        algo = Course(title="Algorithms", credits=4, department_id=cs.id)
        db.session.add(algo)

    teacher_user = User.query.filter_by(email="ada@example.com").first()
    if not teacher_user:
        teacher_user = User(email="ada@example.com", role=UserRole.INSTRUCTOR.value,
                            first_mid_name="Ada", last_name="Lovelace",
                            enrollment_date=datetime(2021, 1, 15))
        teacher_user.set_password("teach123")
        db.session.add(teacher_user)
    db.session.flush()

    ada = Instructor.query.filter_by(email="ada@example.com").first()
    if not ada:
        ada = Instructor(first_mid_name="Ada", last_name="Lovelace", email="ada@example.com",
                         hire_date=datetime(2021, 1, 15), department_id=cs.id, user_id=teacher_user.id)
        db.session.add(ada)
        db.session.flush()
        db.session.add(OfficeAssignment(instructor_id=ada.id, location="B-204"))
        db.session.execute(insert(course_instructor).values(course_id=algo.id, instructor_id=ada.id))
        if cs.administrator_id is None:
            cs.administrator_id = ada.id

    student = User.query.filter_by(email="alan@example.com").first()
    if not student:
        student = User(email="alan@example.com", role=UserRole.STUDENT.value,
                       first_mid_name="Alan", last_name="Turing", department_id=cs.id)
        student.set_password("learn123")
        db.session.add(student)
        db.session.flush()
        db.session.add(Enrollment(course_id=algo.id, student_id=student.id, grade=91.5))

    # Админ для входа
    if not User.query.filter_by(email="admin@example.com").first():
        admin = User(email="admin@example.com", role=UserRole.ADMIN.value,
                     first_mid_name="Site", last_name="Admin")
        admin.set_password("admin123")
        db.session.add(admin)

    db.session.commit()

if __name__ == "__main__":
    app = create_app("dev")
    with app.app_context():
        db.create_all()
        seed_minimal()
        print("DB initialized and seeded")

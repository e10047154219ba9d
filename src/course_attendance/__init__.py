"""Course Attendance package.

Organized by feature modules (attendance, courses, enrollments, users,
notifications) with a thin Flask controller layer on top of service and
repository layers.
"""

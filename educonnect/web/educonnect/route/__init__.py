"""Route aggregation for the EduConnect web application."""

from fastapi import APIRouter

from . import audit, auth, classroom, feedback, grade, leave, notification, school, schoolclass, timetable, user

router = APIRouter()
router.include_router(auth.router)
router.include_router(user.router)
router.include_router(school.router)
router.include_router(classroom.router)
router.include_router(schoolclass.router)
router.include_router(timetable.router)
router.include_router(grade.router)
router.include_router(audit.router)
router.include_router(leave.router)
router.include_router(notification.router)
router.include_router(feedback.router)

# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Best-effort ID card delivery: render the student's card and email it.

This runs after the student row is committed and after the HTTP response
has been decided.  Nothing in here may change that response, so ``deliver``
catches every exception, logs it with traceback, and returns ``False``.
Routers schedule it with ``BackgroundTasks`` so it runs detached from the
request path.
"""

from starlette.concurrency import run_in_threadpool

from core.documents import IdCardData, render_id_card
from core.logger import logger
from core.mailer import Attachment, Mailer, MailMessage
from models.student import Student

_WELCOME_SUBJECT = "Welcome to Aaghaaz Tech - Your Student ID Card"
_WELCOME_BODY = (
    "Dear {first_name},\n\n"
    "Welcome to Aaghaaz Tech! Your registration has been received and is pending approval.\n\n"
    "Please find your student ID card attached. You will need this ID card for "
    "attendance and other purposes.\n\n"
    "Best regards,\nAaghaaz Tech Team"
)
_RESEND_SUBJECT = "Your Student ID Card"
_RESEND_BODY = (
    "Dear {first_name},\n\n"
    "Please find your student ID card attached.\n\n"
    "Best regards,\nAaghaaz Tech"
)


def card_from_student(student: Student, course_name: str = None) -> IdCardData:
    """Snapshot the fields the card needs, so the task holds no ORM state."""
    first = (student.enrolled_courses or [{}])[0]
    enrolled_on = first.get("enrollmentDate")
    return IdCardData(
        student_id=student.id,
        first_name=student.first_name,
        last_name=student.last_name,
        email=student.email,
        cnic=student.cnic,
        phone_number=student.phone_number,
        gender=student.gender,
        status=student.status,
        roll_id=student.roll_id,
        guardian_name=student.guardian_name,
        guardian_phone=student.guardian_phone,
        guardian_relation=student.guardian_relation,
        course_name=course_name,
        enrollment_date=enrolled_on[:10] if enrolled_on else None,
    )


class IdCardDispatcher:
    def __init__(self, mailer: Mailer):
        self.mailer = mailer

    async def deliver(self, card: IdCardData, welcome: bool = True) -> bool:
        """Render and send; never raises."""
        try:
            pdf = await run_in_threadpool(render_id_card, card)
            template_subject, template_body = (
                (_WELCOME_SUBJECT, _WELCOME_BODY) if welcome else (_RESEND_SUBJECT, _RESEND_BODY)
            )
            await self.mailer.send(
                MailMessage(
                    to=card.email,
                    subject=template_subject,
                    body=template_body.format(first_name=card.first_name),
                    attachment=Attachment("student_id_card.pdf", pdf, "application/pdf"),
                )
            )
        except Exception:
            logger.exception("ID card delivery failed for student %s", card.student_id)
            return False
        logger.info("ID card sent to student %s", card.student_id)
        return True

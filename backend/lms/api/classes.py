"""
Classroom API routes.

Routes:
    GET    /api/v1/classes                          — List own (teacher) or joined (student) classes
    POST   /api/v1/classes                          — Create class (teacher)
    POST   /api/v1/classes/join                     — Join class by invite code (student)
    GET    /api/v1/classes/{class_id}               — Get class
    GET    /api/v1/classes/{class_id}/students      — Enrolled students (owner/admin)
    GET    /api/v1/classes/{class_id}/materials     — List materials
    POST   /api/v1/classes/{class_id}/materials     — Add material (owner)
    GET    /api/v1/classes/{class_id}/quizzes       — List quizzes
    POST   /api/v1/classes/{class_id}/quizzes       — Create quiz with questions (owner)
    GET    /api/v1/classes/{class_id}/announcements — List announcements
    POST   /api/v1/classes/{class_id}/announcements — Post announcement (owner)
    GET    /api/v1/classes/{class_id}/assignments   — List assignments
    POST   /api/v1/classes/{class_id}/assignments   — Post assignment (owner)
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from lms.database import get_db
from lms.models.classroom import Classroom
from lms.models.user import Profile, UserRole
from lms.schemas.classroom import (
    ClassroomCreate,
    ClassroomResponse,
    ClassroomListResponse,
    ClassroomStudentInfo,
    ClassroomStudentListResponse,
    JoinClassroomRequest,
    MaterialCreate,
    MaterialResponse,
    MaterialListResponse,
)
from lms.schemas.announcement import (
    AnnouncementCreate,
    AnnouncementListResponse,
    AnnouncementResponse,
    AssignmentCreate,
    AssignmentListResponse,
    AssignmentResponse,
)
from lms.schemas.quiz import (
    QuizCreate,
    QuizResponse,
    QuestionResponse,
    QuizListItem,
    QuizListResponse,
)
from lms.services.class_service import (
    create_classroom,
    get_classroom_by_id,
    is_enrolled,
    join_classroom,
    list_classrooms_for_student,
    list_classrooms_for_teacher,
    list_students,
)
from lms.services.announcement_service import create_announcement, list_announcements
from lms.services.assignment_service import create_assignment, list_assignments
from lms.services.material_service import create_material, list_materials
from lms.services.quiz_service import (
    count_questions,
    create_quiz,
    get_questions,
    list_quizzes,
    list_quizzes_for_student,
)
from lms.middleware.rbac import get_current_user, require_student, require_teacher

router = APIRouter(prefix="/api/v1/classes", tags=["Classes"])


async def _get_accessible_class(db: AsyncSession, class_id: int, user: Profile) -> Classroom:
    classroom = await get_classroom_by_id(db, class_id)
    if not classroom:
        raise HTTPException(status_code=404, detail="Class not found")
    if user.role == UserRole.ADMIN:
        return classroom
    if user.role == UserRole.TEACHER and classroom.created_by == user.id:
        return classroom
    if user.role == UserRole.STUDENT and await is_enrolled(db, class_id, user.id):
        return classroom
    raise HTTPException(status_code=403, detail="Access denied")


@router.get("", response_model=ClassroomListResponse)
async def list_classes(
    db: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Teachers see the classes they created; students see the classes they joined."""
    if current_user.role == UserRole.TEACHER:
        classes = await list_classrooms_for_teacher(db, current_user.id)
    elif current_user.role == UserRole.STUDENT:
        classes = await list_classrooms_for_student(db, current_user.id)
    else:
        raise HTTPException(status_code=403, detail="Access denied")
    return ClassroomListResponse(
        classes=[ClassroomResponse.model_validate(c) for c in classes],
        total=len(classes),
    )


@router.post("", response_model=ClassroomResponse, status_code=status.HTTP_201_CREATED)
async def create_class(
    body: ClassroomCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(require_teacher),
):
    try:
        classroom = await create_classroom(
            db,
            name=body.name,
            teacher_id=current_user.id,
            description=body.description,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ClassroomResponse.model_validate(classroom)


@router.post("/join", response_model=ClassroomResponse)
async def join_class(
    body: JoinClassroomRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(require_student),
):
    try:
        classroom = await join_classroom(db, body.code, current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ClassroomResponse.model_validate(classroom)


@router.get("/{class_id}", response_model=ClassroomResponse)
async def get_class(
    class_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    classroom = await _get_accessible_class(db, class_id, current_user)
    return ClassroomResponse.model_validate(classroom)


@router.get("/{class_id}/students", response_model=ClassroomStudentListResponse)
async def get_class_students(
    class_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    if current_user.role == UserRole.STUDENT:
        raise HTTPException(status_code=403, detail="Access denied")
    await _get_accessible_class(db, class_id, current_user)
    students = await list_students(db, class_id)
    return ClassroomStudentListResponse(
        students=[ClassroomStudentInfo.model_validate(s) for s in students],
        total=len(students),
    )


@router.get("/{class_id}/materials", response_model=MaterialListResponse)
async def get_class_materials(
    class_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    await _get_accessible_class(db, class_id, current_user)
    materials = await list_materials(db, class_id)
    return MaterialListResponse(materials=[MaterialResponse.model_validate(m) for m in materials])


@router.post("/{class_id}/materials", response_model=MaterialResponse, status_code=status.HTTP_201_CREATED)
async def add_class_material(
    class_id: int,
    body: MaterialCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(require_teacher),
):
    try:
        material = await create_material(
            db,
            classroom_id=class_id,
            teacher_id=current_user.id,
            title=body.title,
            material_type=body.type,
            url=body.url,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return MaterialResponse.model_validate(material)


@router.get("/{class_id}/quizzes", response_model=QuizListResponse)
async def get_class_quizzes(
    class_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Students see published quizzes with their own status; owners see every quiz."""
    await _get_accessible_class(db, class_id, current_user)
    if current_user.role == UserRole.STUDENT:
        items = await list_quizzes_for_student(db, classroom_id=class_id, student_id=current_user.id)
        return QuizListResponse(quizzes=[QuizListItem(**item) for item in items])

    quizzes = await list_quizzes(db, class_id)
    counts = await count_questions(db, [quiz.id for quiz in quizzes])
    return QuizListResponse(
        quizzes=[
            QuizListItem(
                id=quiz.id,
                classroom_id=quiz.classroom_id,
                title=quiz.title,
                time_limit_minutes=quiz.time_limit_minutes,
                is_published=bool(quiz.is_published),
                question_count=counts.get(quiz.id, 0),
                created_at=quiz.created_at,
            )
            for quiz in quizzes
        ]
    )


@router.post("/{class_id}/quizzes", response_model=QuizResponse, status_code=status.HTTP_201_CREATED)
async def create_class_quiz(
    class_id: int,
    body: QuizCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(require_teacher),
):
    try:
        quiz = await create_quiz(
            db,
            classroom_id=class_id,
            teacher_id=current_user.id,
            title=body.title,
            time_limit_minutes=body.time_limit_minutes,
            questions=[question.model_dump() for question in body.questions],
            is_published=body.is_published,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    questions = await get_questions(db, quiz.id)
    return QuizResponse(
        id=quiz.id,
        classroom_id=quiz.classroom_id,
        title=quiz.title,
        time_limit_minutes=quiz.time_limit_minutes,
        is_published=bool(quiz.is_published),
        created_by=quiz.created_by,
        created_at=quiz.created_at,
        questions=[QuestionResponse.model_validate(q) for q in questions],
    )


@router.get("/{class_id}/announcements", response_model=AnnouncementListResponse)
async def get_class_announcements(
    class_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    await _get_accessible_class(db, class_id, current_user)
    announcements = await list_announcements(db, class_id)
    return AnnouncementListResponse(
        announcements=[AnnouncementResponse.model_validate(a) for a in announcements]
    )


@router.post("/{class_id}/announcements", response_model=AnnouncementResponse, status_code=status.HTTP_201_CREATED)
async def post_class_announcement(
    class_id: int,
    body: AnnouncementCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(require_teacher),
):
    try:
        announcement = await create_announcement(
            db,
            classroom_id=class_id,
            teacher_id=current_user.id,
            title=body.title,
            content=body.content,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return AnnouncementResponse.model_validate(announcement)


@router.get("/{class_id}/assignments", response_model=AssignmentListResponse)
async def get_class_assignments(
    class_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    await _get_accessible_class(db, class_id, current_user)
    assignments = await list_assignments(db, class_id)
    return AssignmentListResponse(assignments=[AssignmentResponse.model_validate(a) for a in assignments])


@router.post("/{class_id}/assignments", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def post_class_assignment(
    class_id: int,
    body: AssignmentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Profile = Depends(require_teacher),
):
    try:
        assignment = await create_assignment(
            db,
            classroom_id=class_id,
            teacher_id=current_user.id,
            title=body.title,
            content=body.content,
            due_date=body.due_date,
            file_url=body.file_url,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return AssignmentResponse.model_validate(assignment)

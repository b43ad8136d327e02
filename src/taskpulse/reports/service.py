from __future__ import annotations

import io
from typing import Sequence

import pandas as pd

from ..attendance.repository import AttendanceRepository
from ..core.enums import Role
from ..tasks.repository import TaskRepository
from ..users.repository import UserRepository

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

USER_COLUMNS = ["User ID", "Name", "Email", "Present days", "Absent days", "Login streak", "Last login"]
TASK_COLUMNS = ["Task ID", "Title", "Status", "Priority", "Due date", "Assignees", "Overdue notified"]


def to_xlsx(df: pd.DataFrame, *, sheet_name: str) -> io.BytesIO:
    """Write a frame to an in-memory workbook, rewound for sending."""
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
    output.seek(0)
    return output


class ReportService:
    def __init__(self, users: UserRepository, attendance: AttendanceRepository, tasks: TaskRepository):
        self._users = users
        self._attendance = attendance
        self._tasks = tasks

    def users_frame(self) -> pd.DataFrame:
        totals = {t.user_id: t for t in self._attendance.totals_by_user()}
        rows: list[dict] = []
        for u in self._users.list_by_role(Role.USER):
            t = totals.get(u.user_id)
            rows.append(
                {
                    "User ID": u.user_id,
                    "Name": u.full_name,
                    "Email": u.email,
                    "Present days": t.present_days if t else 0,
                    # the counter on the user row is what absence notices report
                    "Absent days": u.absent_days,
                    "Login streak": u.login_streak,
                    "Last login": u.last_login_at.strftime("%Y-%m-%d %H:%M") if u.last_login_at else "",
                }
            )
        return pd.DataFrame(rows, columns=USER_COLUMNS)

    def tasks_frame(self) -> pd.DataFrame:
        rows = [
            {
                "Task ID": t.task_id,
                "Title": t.title,
                "Status": t.status.value,
                "Priority": t.priority.value,
                "Due date": t.due_date.strftime("%Y-%m-%d %H:%M") if t.due_date else "",
                "Assignees": ", ".join(str(a) for a in t.assigned_to),
                "Overdue notified": "yes" if t.overdue_notified else "no",
            }
            for t in self._tasks.list_all()
        ]
        return pd.DataFrame(rows, columns=TASK_COLUMNS)

    def users_workbook(self) -> io.BytesIO:
        return to_xlsx(self.users_frame(), sheet_name="Users")

    def tasks_workbook(self) -> io.BytesIO:
        return to_xlsx(self.tasks_frame(), sheet_name="Tasks")


def summarize_statuses(frame: pd.DataFrame) -> Sequence[dict]:
    """Task counts per status, for the JSON variant of the task report."""
    if frame.empty:
        return []
    counts = frame.groupby("Status").size()
    return [{"status": str(k), "count": int(v)} for k, v in counts.items()]


def frame_records(frame: pd.DataFrame) -> list[dict]:
    """Rows as plain Python values (numpy scalars are not JSON serializable)."""
    return frame.astype(object).to_dict(orient="records")

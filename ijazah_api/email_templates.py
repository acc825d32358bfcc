"""Email templates for platform notifications.

Each template function takes a data dictionary and returns a dict with
``subject``, ``html`` and ``text``. All templates share one RTL layout.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

from datetime import datetime
from html import escape
from typing import Any, Callable, Dict

IJAZAH_TYPE_LABELS = {
    "hifz": "حفظ",
    "qirat": "قراءات",
    "tajweed": "تجويد",
    "sanad": "سند",
}

STATUS_LABELS = {
    "draft": "مسودة",
    "submitted": "تم التقديم",
    "under_review": "قيد المراجعة",
    "interview_scheduled": "تم جدولة المقابلة",
    "approved": "تم القبول",
    "rejected": "مرفوض",
    "expired": "منتهي الصلاحية",
    "withdrawn": "تم السحب",
    "completed": "مكتمل",
}

STATUS_COLORS = {
    "submitted": "#3B82F6",
    "under_review": "#F59E0B",
    "interview_scheduled": "#8B5CF6",
    "approved": "#10B981",
    "rejected": "#EF4444",
    "expired": "#6B7280",
    "withdrawn": "#6B7280",
}

DEFAULT_COLOR = "#1B4332"

_LAYOUT = """<!DOCTYPE html>
<html dir="rtl" lang="ar">
<head>
  <meta charset="UTF-8">
  <style>
    body {{ font-family: 'IBM Plex Sans Arabic', Arial, sans-serif; background-color: #FFFBF5; }}
    .container {{ max-width: 600px; margin: 40px auto; background: white; border-radius: 12px; }}
    .header {{ background: #1B4332; padding: 40px 20px; text-align: center; }}
    .header h1 {{ color: #B8860B; font-family: 'Amiri', serif; }}
    .header p {{ color: white; }}
    .content {{ padding: 40px; color: #2C3E50; line-height: 1.8; }}
    .info-box {{ background: #F5F0E6; border-right: 4px solid {accent}; padding: 20px; border-radius: 8px; }}
    .button {{ display: inline-block; background: #B8860B; color: white; padding: 14px 32px; border-radius: 8px; }}
    .footer {{ background: #F5F0E6; padding: 30px; text-align: center; color: #7F8C8D; font-size: 14px; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="header">
      <h1>🕌 نظام الإجازة الإلكتروني</h1>
      <p>{banner}</p>
    </div>
    <div class="content">
      <h2>السلام عليكم ورحمة الله وبركاته</h2>
      <p>{greeting} <strong>{name}</strong>،</p>
      <p>{lead}</p>
      <div class="info-box">
{rows}
      </div>
      {extra}
      <p style="text-align: center"><a href="{action_url}" class="button">{action_label}</a></p>
    </div>
    <div class="footer">
      <p><strong>نظام الإجازة الإلكتروني</strong></p>
      <p>© {year} جميع الحقوق محفوظة</p>
    </div>
  </div>
</body>
</html>
"""


def ijazah_type_label(ijazah_type: str) -> str:
    return IJAZAH_TYPE_LABELS.get(ijazah_type, ijazah_type)


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)


def status_color(status: str) -> str:
    return STATUS_COLORS.get(status, DEFAULT_COLOR)


def _render(
    subject: str,
    banner: str,
    greeting: str,
    data: Dict[str, Any],
    lead: str,
    rows: Dict[str, Any],
    action_url: str,
    action_label: str,
    extra: str = "",
    accent: str = "#B8860B",
) -> Dict[str, str]:
    """Render the shared layout into html and plain-text bodies."""
    name = data.get("recipient_name") or ""
    html_rows = "\n".join(
        f"        <p>{escape(label)}: <strong>{escape(str(value))}</strong></p>"
        for label, value in rows.items()
    )
    html = _LAYOUT.format(
        accent=accent,
        banner=escape(banner),
        greeting=greeting,
        name=escape(name),
        lead=escape(lead),
        rows=html_rows,
        extra=extra,
        action_url=escape(action_url, quote=True),
        action_label=escape(action_label),
        year=datetime.now().year,
    )

    text_lines = [
        "السلام عليكم ورحمة الله وبركاته",
        f"{greeting} {name}،",
        "",
        lead,
        "",
    ]
    text_lines.extend(f"{label}: {value}" for label, value in rows.items())
    text_lines.extend(["", f"{action_label}: {action_url}", "", "نظام الإجازة الإلكتروني"])
    return {"subject": subject, "html": html, "text": "\n".join(text_lines)}


def application_submitted(data: Dict[str, Any]) -> Dict[str, str]:
    return _render(
        subject="✅ تم استلام طلب الإجازة - Application Received",
        banner="Ejazah",
        greeting="عزيزي/عزيزتي",
        data=data,
        lead="نشكركم على تقديم طلب الإجازة في نظامنا. تم استلام طلبكم بنجاح وسيتم مراجعته قريبًا إن شاء الله.",
        rows={
            "رقم الطلب": data["application_number"],
            "نوع الإجازة": ijazah_type_label(data["ijazah_type"]),
            "تاريخ التقديم": data["submitted_date"],
        },
        action_url=data["application_url"],
        action_label="متابعة الطلب",
    )


def application_status_changed(data: Dict[str, Any]) -> Dict[str, str]:
    status = data["status"]
    rows = {
        "رقم الطلب": data["application_number"],
        "الحالة الجديدة": status_label(status),
    }
    if data.get("notes"):
        rows["ملاحظات"] = data["notes"]
    return _render(
        subject=f"📢 تحديث حالة طلب الإجازة - {status_label(status)}",
        banner="تحديث حالة الطلب",
        greeting="عزيزي/عزيزتي",
        data=data,
        lead="نود إعلامكم بأنه تم تحديث حالة طلب الإجازة الخاص بكم.",
        rows=rows,
        action_url=data["application_url"],
        action_label="عرض الطلب",
        accent=status_color(status),
    )


def certificate_issued(data: Dict[str, Any]) -> Dict[str, str]:
    return _render(
        subject="🎓 تهانينا! تم إصدار شهادة الإجازة - Certificate Issued",
        banner="مبارك! تم إصدار شهادتكم",
        greeting="عزيزي/عزيزتي",
        data=data,
        lead="يسعدنا أن نهنئكم بإصدار شهادة الإجازة الخاصة بكم. بارك الله فيكم ونفع بكم.",
        rows={
            "رقم الشهادة": data["certificate_number"],
            "نوع الإجازة": ijazah_type_label(data["ijazah_type"]),
            "الشيخ المُجيز": data["scholar_name"],
        },
        action_url=data["certificate_url"],
        action_label="عرض الشهادة",
        extra=(
            f'<p>رابط التحقق: <a href="{escape(data["verification_url"], quote=True)}">'
            f'{escape(data["verification_url"])}</a></p>'
        ),
    )


def review_request(data: Dict[str, Any]) -> Dict[str, str]:
    extra = ""
    if data.get("is_urgent"):
        extra = '<p style="color: #FF6B6B; font-weight: 600;">⚠️ عاجل - يتطلب مراجعة فورية</p>'
    return _render(
        subject="📋 طلب مراجعة جديد - New Application Review Request",
        banner="طلب مراجعة جديد",
        greeting="فضيلة الشيخ",
        data=data,
        lead="تم تعيين طلب إجازة جديد لمراجعتكم الكريمة.",
        rows={
            "رقم الطلب": data["application_number"],
            "نوع الإجازة": ijazah_type_label(data["ijazah_type"]),
            "اسم الطالب": data["student_name"],
            "تاريخ التقديم": data["submitted_date"],
        },
        action_url=data["review_url"],
        action_label="مراجعة الطلب",
        extra=extra,
    )


TEMPLATES: Dict[str, Callable[[Dict[str, Any]], Dict[str, str]]] = {
    "application_submitted": application_submitted,
    "application_status_changed": application_status_changed,
    "certificate_issued": certificate_issued,
    "review_request": review_request,
}

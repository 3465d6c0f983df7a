from django.urls import path

from tracking.views import (
    department_tags_api,
    departments_api,
    logs_api,
    logs_delete_api,
    summary_api,
    tag_status_api,
    tag_validate_api,
)

urlpatterns = [
    path("logs/", logs_api, name="tracker-logs"),
    path("logs/delete/", logs_delete_api, name="tracker-logs-delete"),
    path("tags/<str:tag>/status/", tag_status_api, name="tracker-tag-status"),
    path("tags/<str:tag>/validate/", tag_validate_api, name="tracker-tag-validate"),
    path("departments/", departments_api, name="tracker-departments"),
    path("departments/<str:department>/tags/", department_tags_api, name="tracker-department-tags"),
    path("summary/", summary_api, name="tracker-summary"),
]

"""Starlette-Admin setup: read-mostly browsers for the four tables."""

from __future__ import annotations

from starlette_admin.contrib.sqla import Admin, ModelView

from supportdesk.schema import Analytics, Email, KnowledgeBaseEntry, Response


class EmailView(ModelView):
    page_size = 25
    fields = [
        "id", "user_id", "sender_email", "subject", "body", "received_at",
        "sentiment", "priority", "category", "urgency_keywords",
        "extracted_info", "processed", "message_id",
    ]
    exclude_fields_from_list = ["body", "urgency_keywords", "extracted_info", "message_id"]
    searchable_fields = ["sender_email", "subject", "category"]
    sortable_fields = ["received_at", "priority", "sentiment", "processed"]
    fields_default_sort = [("received_at", True)]

    def can_create(self, request) -> bool:
        return False


class ResponseView(ModelView):
    page_size = 25
    fields = [
        "id", "email_id", "user_id", "generated_response",
        "edited_response", "sent", "sent_at", "created_at",
    ]
    exclude_fields_from_list = ["generated_response", "edited_response"]
    searchable_fields = ["email_id", "user_id"]
    sortable_fields = ["sent", "sent_at", "created_at"]
    fields_default_sort = [("created_at", True)]

    def can_create(self, request) -> bool:
        return False

    def can_edit(self, request) -> bool:
        # sent state changes only through delivery
        return False


class AnalyticsView(ModelView):
    page_size = 31
    fields = [
        "user_id", "date", "total_emails", "urgent_emails",
        "resolved_emails", "pending_emails", "positive_sentiment",
        "negative_sentiment", "neutral_sentiment",
    ]
    searchable_fields = ["user_id", "date"]
    sortable_fields = ["date", "total_emails", "pending_emails"]
    fields_default_sort = [("date", True)]

    def can_create(self, request) -> bool:
        return False

    def can_edit(self, request) -> bool:
        return False


class KnowledgeBaseView(ModelView):
    page_size = 25
    fields = ["id", "user_id", "title", "content", "keywords"]
    exclude_fields_from_list = ["content"]
    searchable_fields = ["title", "keywords"]
    sortable_fields = ["title"]


def create_admin(engine) -> Admin:
    """Create and configure the Starlette-Admin instance."""
    admin = Admin(engine, title="Support Desk", base_url="/admin")

    admin.add_view(EmailView(Email, icon="fa fa-envelope", label="Emails"))
    admin.add_view(ResponseView(Response, icon="fa fa-reply", label="Responses"))
    admin.add_view(AnalyticsView(Analytics, icon="fa fa-chart-bar", label="Analytics"))
    admin.add_view(KnowledgeBaseView(KnowledgeBaseEntry, icon="fa fa-book", label="Knowledge Base"))

    return admin

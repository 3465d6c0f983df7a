from django.db import models


class Document(models.Model):
    collection = models.CharField(max_length=64)
    doc_id = models.CharField(max_length=128)
    data = models.JSONField(default=dict)
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["collection", "doc_id"], name="uq_docstore_collection_doc_id"),
        ]
        indexes = [
            models.Index(fields=["collection", "created_at"], name="docstore_coll_created_idx"),
        ]

    def __str__(self):
        return f"{self.collection}/{self.doc_id}"


class DocumentHead(models.Model):
    collection = models.CharField(max_length=64)
    key = models.CharField(max_length=255)
    doc_id = models.CharField(max_length=128, blank=True, default="")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["collection", "key"], name="uq_docstore_head_collection_key"),
        ]

    def __str__(self):
        return f"Head<{self.collection}:{self.key} -> {self.doc_id or '-'}>"

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Document",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("collection", models.CharField(max_length=64)),
                ("doc_id", models.CharField(max_length=128)),
                ("data", models.JSONField(default=dict)),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "indexes": [models.Index(fields=["collection", "created_at"], name="docstore_coll_created_idx")],
            },
        ),
        migrations.CreateModel(
            name="DocumentHead",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("collection", models.CharField(max_length=64)),
                ("key", models.CharField(max_length=255)),
                ("doc_id", models.CharField(blank=True, default="", max_length=128)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.AddConstraint(
            model_name="document",
            constraint=models.UniqueConstraint(fields=("collection", "doc_id"), name="uq_docstore_collection_doc_id"),
        ),
        migrations.AddConstraint(
            model_name="documenthead",
            constraint=models.UniqueConstraint(fields=("collection", "key"), name="uq_docstore_head_collection_key"),
        ),
    ]

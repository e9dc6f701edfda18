from imagetask.core.plugin import IMAGE_TASK, NORMALIZATION_VARIANTS, TEST_IMAGE_TASK, apply, image_tasks


def test_image_tasks(make_project):
    assert image_tasks(make_project("connectors/source-postgres")) == {IMAGE_TASK: "Dockerfile"}
    assert image_tasks(make_project("connectors/source-mongodb")) == {
        IMAGE_TASK: "Dockerfile",
        TEST_IMAGE_TASK: "Dockerfile.test",
    }

    tasks = image_tasks(make_project("bases/base-normalization"))
    assert len(tasks) == len(NORMALIZATION_VARIANTS) + 1
    assert tasks["airbyteDockerMSSql"] == "mssql.Dockerfile"
    assert tasks["airbyteDockerDuckDB"] == "duckdb.Dockerfile"


def test_apply_normalization(factory, scheduler, make_project):
    project = make_project("bases/base-normalization", "FROM fishtownanalytics/dbt:1.0.0\n")
    for variant in ("mssql", "mysql"):
        project.file(f"{variant}.Dockerfile").write_text("FROM fishtownanalytics/dbt:1.0.0\n")

    handles = apply(project, factory)
    assert [h.name for h in handles][:2] == [
        ":bases:base-normalization:airbyteDocker",
        ":bases:base-normalization:airbyteDockerMSSql",
    ]
    # Variants without build files get placeholder tasks, not build units.
    assert sorted(u.tagged_image for u in factory.context.index.units()) == [
        "airbyte/base-normalization-mssql:dev",
        "airbyte/base-normalization-mysql:dev",
        "airbyte/base-normalization:dev",
    ]
    assert scheduler.find(":bases:base-normalization:airbyteDockerOracle") is not None


def test_apply_uses_name_label(factory, make_project):
    project = make_project(
        "connectors/source-mongodb",
        'FROM openjdk:17\nLABEL io.airbyte.name=airbyte/source-mongodb-v2\n',
    )
    project.file("Dockerfile.test").write_text("FROM airbyte/source-mongodb-v2:dev\n")
    apply(project, factory)
    assert factory.context.index.get("airbyte/source-mongodb-v2:dev").task_name == IMAGE_TASK
    assert factory.context.index.get("airbyte/source-mongodb-test:dev").task_name == TEST_IMAGE_TASK

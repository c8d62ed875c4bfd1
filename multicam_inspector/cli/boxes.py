"""Validation box CLI commands."""

import json
from typing import Optional

import typer

from multicam_inspector.cli.main import OutputFormat, boxes_app
from multicam_inspector.tasks import load_tasks


@boxes_app.command("list")
def list_command(
    task_file: str = typer.Argument(..., help="Inspection task JSON file"),
    task_id: Optional[str] = typer.Option(None, "--task", help="Only list this task"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.HUMAN,
        "--format",
        "-f",
        help="Output format",
    ),
) -> None:
    """
    List the validation boxes of every task in an inspection file.

    Example:
        mci boxes list data/inspection.json
        mci boxes list data/inspection.json --task 7 --format json
    """
    try:
        tasks = load_tasks(task_file)
    except FileNotFoundError:
        typer.echo(f"Error: Task file not found: {task_file}", err=True)
        raise typer.Exit(1)
    except (ValueError, KeyError) as e:
        typer.echo(f"Error: Invalid task file {task_file}: {e}", err=True)
        raise typer.Exit(1)

    if task_id is not None:
        tasks = [t for t in tasks if t.task_id == task_id]
        if not tasks:
            typer.echo(f"Error: Task '{task_id}' not found in {task_file}", err=True)
            raise typer.Exit(1)

    if output_format == OutputFormat.JSON:
        output = {
            "tasks": [
                {
                    "id": task.task_id,
                    "title": task.title,
                    "validationBoxes": task.boxes_to_dict(),
                }
                for task in tasks
            ]
        }
        typer.echo(json.dumps(output, indent=2))
        return

    for task in tasks:
        box_count = len(task.all_box_ids())
        typer.echo(f"Task {task.task_id}: {task.title} ({box_count} box{'es' if box_count != 1 else ''})")
        for camera, boxes in task.validation_boxes.items():
            for box in boxes:
                typer.echo(
                    f"  {camera:<4} {box.id:<16} "
                    f"x={box.x:.3f} y={box.y:.3f} w={box.width:.3f} h={box.height:.3f}"
                    f"{'  ' + box.label if box.label else ''}"
                )
        for camera, raws in task.pixel_boxes.items():
            for raw in raws:
                typer.echo(
                    f"  {camera:<4} {str(raw['id']):<16} "
                    f"pixels x={raw['x']} y={raw['y']} w={raw['width']} h={raw['height']}"
                )

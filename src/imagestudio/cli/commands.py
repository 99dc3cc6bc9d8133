"""
Click command definitions for the imagestudio CLI.

This module contains the Click command group and all CLI commands
(edit, generate, enhance, describe, stats).
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from imagestudio import (
    Config,
    EditorSession,
    EncodedImage,
    EnhancementMode,
    FileStore,
    GenerationFailure,
    GenerationResult,
    UsageCounters,
    ValidationError,
    __version__,
    enhance_prompt,
    get_description,
    validate_prompt,
)
from imagestudio.cli import progress
from imagestudio.cli.handlers import (
    cancel_check,
    exit_with_failure,
    install_sigint_handler,
    reset_cancellation,
    restore_sigint_handler,
    run_with_error_handling,
)
from imagestudio.cli.utils import default_output_path
from imagestudio.logging_config import configure_logging, get_verbosity_from_env


def _common_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every command that talks to an API."""
    fn = click.option(
        "--debug-api",
        is_flag=True,
        help="Log raw API request payload and response (image data truncated) for debugging.",
    )(fn)
    fn = click.option(
        "--verbose",
        "-v",
        "verbose_count",
        count=True,
        help="Increase verbosity: -v also show prompts, -vv show API/retry detail.",
    )(fn)
    fn = click.option(
        "--quiet",
        "-q",
        is_flag=True,
        help="Minimize progress messages; only print the result or errors.",
    )(fn)
    fn = click.option(
        "--api-key",
        envvar="GEMINI_API_KEY",
        help="Gemini API key (overrides GEMINI_API_KEY environment variable).",
    )(fn)
    return fn


def _setup(quiet: bool, verbose_count: int) -> None:
    # Reset cancel event for this run (in case CLI is invoked again in same process)
    reset_cancellation()
    # CLI flags override IMAGESTUDIO_VERBOSITY
    verbose_level = min(verbose_count, 2) if verbose_count > 0 else get_verbosity_from_env()
    configure_logging(verbose_level=verbose_level, quiet=quiet)


def _load_config(api_key: str | None, debug_api: bool, model: str | None = None) -> Config:
    config = Config.from_env()
    if api_key is not None:
        config.set_api_key(api_key)
    if model:
        config.set_image_model(model)
    if debug_api:
        config.debug_api = True
    config.validate()
    return config


def _run(fn: Callable[[], None], quiet: bool) -> None:
    # Install SIGINT handler for cancellation
    old_sigint = install_sigint_handler()
    try:
        run_with_error_handling(fn, quiet=quiet)
    finally:
        restore_sigint_handler(old_sigint)


def _maybe_enhance(
    instruction: str,
    config: Config,
    mode: EnhancementMode,
    quiet: bool,
    context_image: EncodedImage | None = None,
    context_description: str | None = None,
) -> str:
    def call() -> str:
        return enhance_prompt(
            instruction,
            context_image=context_image,
            mode=mode,
            config=config,
            context_description=context_description,
        )

    if quiet:
        return call()
    with progress.enhancement_progress(
        model=config.enhancement_model,
        with_context=context_image is not None or bool(context_description),
    ):
        return call()


def _finish(
    result: GenerationResult,
    operation: str,
    out: Path | None,
    config: Config,
    instruction: str,
    original: str,
    enhanced: bool,
    total_count: int,
    quiet: bool,
) -> None:
    if isinstance(result, GenerationFailure):
        exit_with_failure(result, quiet=quiet)

    out_path = out if out is not None else Path(default_output_path(result.image.extension))
    result.image.save(out_path)

    if quiet:
        # Quiet mode: only output path to stdout
        click.echo(str(out_path))
        return
    progress.print_success_result(
        output_path=out_path,
        operation=operation,
        model_used=config.image_model,
        instruction_used=instruction,
        note=result.note,
        enhanced=enhanced,
        original_instruction=original if enhanced else None,
        total_count=total_count,
    )
    # Also print path to stdout for scriptability
    click.echo(str(out_path))


@click.group(
    help=f"""AI image editing and generation (Gemini, with optional prompt enhancement).

\b
Version: {__version__}
"""
)
@click.version_option(
    version=__version__,
    package_name="imagestudio",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(ctx: click.Context) -> None:
    ctx.color = True


@cli.command()
@click.option(
    "--image",
    "-i",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to the image to edit.",
)
@click.option("--prompt", "-p", required=True, help="What to change in the image.")
@click.option("--out", "-o", type=click.Path(path_type=Path), help="Output file path.")
@click.option("--model", "-m", help="Gemini image model (default from config).")
@click.option("--enhance", is_flag=True, help="Enhance the instruction before sending it.")
@_common_options
def edit(
    image: Path,
    prompt: str,
    out: Path | None,
    model: str | None,
    enhance: bool,
    api_key: str | None,
    quiet: bool,
    verbose_count: int,
    debug_api: bool,
) -> None:
    """Edit an image with a text instruction."""
    _setup(quiet, verbose_count)

    def do_edit() -> None:
        config = _load_config(api_key, debug_api, model)
        source = EncodedImage.from_path(image)

        session = EditorSession(config)
        session.load_image(source)

        instruction = prompt
        if enhance:
            instruction = _maybe_enhance(
                prompt, config, EnhancementMode.EDITING, quiet, context_image=source
            )

        if quiet:
            result = session.apply_edit(instruction, cancel_check=cancel_check)
        else:
            with progress.request_progress("edit", model=config.image_model):
                result = session.apply_edit(instruction, cancel_check=cancel_check)

        _finish(
            result,
            "edit",
            out,
            config,
            instruction,
            prompt,
            enhance,
            session.counters.edit_count,
            quiet,
        )

    _run(do_edit, quiet)


@cli.command()
@click.option("--prompt", "-p", help="Text description of the image to generate.")
@click.option(
    "--from-image",
    "-r",
    "from_image",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Describe this image and use the description as the prompt (or as enhancement context with --prompt).",
)
@click.option("--out", "-o", type=click.Path(path_type=Path), help="Output file path.")
@click.option("--model", "-m", help="Gemini image model (default from config).")
@click.option("--enhance", is_flag=True, help="Enhance the prompt before sending it.")
@_common_options
def generate(
    prompt: str | None,
    from_image: Path | None,
    out: Path | None,
    model: str | None,
    enhance: bool,
    api_key: str | None,
    quiet: bool,
    verbose_count: int,
    debug_api: bool,
) -> None:
    """Generate an image from a text prompt."""
    _setup(quiet, verbose_count)

    def do_generate() -> None:
        if prompt is None and from_image is None:
            raise ValidationError("Provide --prompt, --from-image, or both.", field="prompt")
        config = _load_config(api_key, debug_api, model)

        description: str | None = None
        if from_image is not None:
            reference = EncodedImage.from_path(from_image)
            if quiet:
                description = get_description(reference, config)
            else:
                with progress.analysis_progress(model=config.analysis_model):
                    description = get_description(reference, config)

        original = prompt if prompt is not None else (description or "")
        instruction = original
        # A prompt plus a reference image always goes through enhancement so the
        # description can be folded into the instruction
        use_enhancement = enhance or (prompt is not None and description is not None)
        if use_enhancement:
            validate_prompt(original)
            instruction = _maybe_enhance(
                original,
                config,
                EnhancementMode.GENERATION,
                quiet,
                context_description=description if prompt is not None else None,
            )

        session = EditorSession(config)
        if quiet:
            result = session.generate(instruction, cancel_check=cancel_check)
        else:
            with progress.request_progress("generate", model=config.image_model):
                result = session.generate(instruction, cancel_check=cancel_check)

        _finish(
            result,
            "generate",
            out,
            config,
            instruction,
            original,
            use_enhancement,
            session.counters.generation_count,
            quiet,
        )

    _run(do_generate, quiet)


@cli.command()
@click.option("--prompt", "-p", required=True, help="Instruction to enhance.")
@click.option(
    "--mode",
    type=click.Choice([m.value for m in EnhancementMode], case_sensitive=False),
    default=EnhancementMode.EDITING.value,
    show_default=True,
    help="editing keeps to what the image shows; generation embellishes freely.",
)
@click.option(
    "--image",
    "-i",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Image the instruction refers to (used as context).",
)
@click.option(
    "--describe",
    "describe_context",
    is_flag=True,
    help="Describe --image with Gemini first and use the description as context.",
)
@_common_options
def enhance(
    prompt: str,
    mode: str,
    image: Path | None,
    describe_context: bool,
    api_key: str | None,
    quiet: bool,
    verbose_count: int,
    debug_api: bool,
) -> None:
    """Enhance an instruction and print it to stdout."""
    _setup(quiet, verbose_count)

    def do_enhance() -> None:
        validate_prompt(prompt)
        config = _load_config(api_key, debug_api)
        context_image = EncodedImage.from_path(image) if image is not None else None
        description: str | None = None
        if describe_context:
            if context_image is None:
                raise ValidationError("--describe needs --image.", field="image")
            description = get_description(context_image, config)

        enhanced = _maybe_enhance(
            prompt,
            config,
            EnhancementMode(mode.lower()),
            quiet,
            context_image=context_image,
            context_description=description,
        )
        click.echo(enhanced)

    _run(do_enhance, quiet)


@cli.command()
@click.option(
    "--image",
    "-i",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Image to describe.",
)
@_common_options
def describe(
    image: Path,
    api_key: str | None,
    quiet: bool,
    verbose_count: int,
    debug_api: bool,
) -> None:
    """Describe an image in prose suitable as a generation prompt."""
    _setup(quiet, verbose_count)

    def do_describe() -> None:
        config = _load_config(api_key, debug_api)
        source = EncodedImage.from_path(image)
        if quiet:
            description = get_description(source, config)
        else:
            with progress.analysis_progress(model=config.analysis_model):
                description = get_description(source, config)
        click.echo(description)

    _run(do_describe, quiet)


@cli.command()
@click.option("--reset", is_flag=True, help="Set both usage counters back to zero.")
def stats(reset: bool) -> None:
    """Show how many edits and generations have succeeded."""
    configure_logging(verbose_level=get_verbosity_from_env(), quiet=False)

    def do_stats() -> None:
        config = Config.from_env()
        path = config.counter_file()
        counters = UsageCounters(FileStore(path))
        if reset:
            counters.store.clear()
            progress.print_success("Usage counters reset.")
        progress.print_stats(counters.edit_count, counters.generation_count, path)
        click.echo(f"edits={counters.edit_count} generations={counters.generation_count}")

    run_with_error_handling(do_stats)


def main() -> None:
    """Entry point for the imagestudio console script."""
    cli()


__all__ = ["cli", "main", "edit", "generate", "enhance", "describe", "stats"]

"""
CLI entrypoint:
  automedia --script script.txt --audio narration.mp3 [--budget 5] [--output-dir output]
  python -m automedia ...
"""

import argparse
import getpass
import sys
from typing import Optional

from automedia.adapters import default_adapters
from automedia.application.pipeline import ProductionPipeline
from automedia.config import DEFAULT_BATCH_LIMIT, GEMINI_API_KEY, OUTPUT_DIR
from automedia.domain.errors import CredentialError, RenderError, SyncError


def _ask_yes_no(question: str, default: bool = True) -> bool:
    suffix = "[Y/n]" if default else "[y/N]"
    answer = input(f"{question} {suffix} ").strip().lower()
    if not answer:
        return default
    return answer in ("y", "yes")


def _ask_budget(default: int) -> str:
    answer = input(f"Batch limit (images before pause) [{default}]: ").strip()
    return answer or str(default)


def _generate_images(pipeline: ProductionPipeline, budget: Optional[int], env_key: str) -> bool:
    """Keep asking for keys until every line is completed or failed. Returns False if the operator gave up."""
    key = env_key
    while True:
        done, total = pipeline.progress()
        if not key:
            print(f"\n🔑 {pipeline.key_prompt_message}")
            print(f"   Progress: {done} / {total} images generated.")
            key = getpass.getpass("Google GenAI Key (empty to quit): ").strip()
            if not key:
                return False
        limit = budget if budget is not None else _ask_budget(DEFAULT_BATCH_LIMIT)

        try:
            report = pipeline.submit_credential(key, limit)
        except CredentialError:
            key = ""
            continue
        key = ""

        if not report.needs_new_key and not pipeline.has_pending():
            return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Turn a 'narration | image prompt' script and a narration track into a slideshow video"
    )
    parser.add_argument("--script", required=True, help="UTF-8 text file, one 'narration | prompt' per line")
    parser.add_argument("--audio", help="Narration audio file (mp3, wav, ...)")
    parser.add_argument("--budget", type=int, help="Images per API key before pausing (asked each batch if omitted)")
    parser.add_argument("--output-dir", default=OUTPUT_DIR, help="Where video, manifest and images are written")
    parser.add_argument("--skip-render", action="store_true", help="Stop after sync and manifest export")
    parser.add_argument("--export-images", action="store_true", help="Also write every generated image to disk")
    parser.add_argument("--use-env-key", action="store_true", help="Use GEMINI_API_KEY for the first batch")
    args = parser.parse_args(argv)

    pipeline = ProductionPipeline(**default_adapters(), output_dir=args.output_dir)

    print("=" * 60)
    print("AutoMedia: script -> images -> sync -> video")
    print("=" * 60)

    print("\n[1/4] Loading script...")
    if not pipeline.load_script_file(args.script):
        return 1

    print("\n[2/4] Generating images...")
    env_key = GEMINI_API_KEY if args.use_env_key else ""
    if not _generate_images(pipeline, args.budget, env_key):
        print("\n⚠️  Stopped before all images were generated.")
        print(f"   Manifest saved to: {pipeline.export_manifest()}")
        return 2

    done, total = pipeline.progress()
    print(f"\n✅ {done} of {total} images ready")
    if done < total:
        print(f"⚠️  {total - done} line(s) failed and will be left out of the video")

    if args.export_images:
        paths = pipeline.export_images()
        print(f"   Images saved: {len(paths)}")

    if not args.audio:
        print(f"\nNo audio given. Manifest saved to: {pipeline.export_manifest()}")
        return 0

    print("\n[3/4] Syncing audio to script...")
    if done == 0:
        print("❌ No images were generated, so there is nothing to place on the timeline.")
        print(f"   Manifest saved to: {pipeline.export_manifest()}")
        return 3
    try:
        pipeline.set_audio(args.audio)
    except FileNotFoundError as e:
        print(f"❌ {e}")
        return 3
    while True:
        try:
            pipeline.sync_audio()
            break
        except SyncError:
            if pipeline.session is None or not pipeline.session.key:
                key = getpass.getpass("API key for audio sync (empty to quit): ").strip()
                if not key:
                    return 3
                try:
                    pipeline.submit_credential(key, 1, start=False)
                except CredentialError:
                    continue
                continue
            if not _ask_yes_no("Retry sync?"):
                return 3

    print(f"   Manifest saved to: {pipeline.export_manifest()}")
    if args.skip_render:
        return 0

    print("\n[4/4] Rendering video...")

    def show_progress(pct: int) -> None:
        sys.stdout.write(f"\r   Rendering... {pct}%")
        sys.stdout.flush()

    try:
        pipeline.render(on_progress=show_progress)
    except RenderError as e:
        print(f"\n❌ {e}")
        return 4
    print()
    print(f"\n✅ Success! Video saved to: {pipeline.export_video()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
PrismTrace - A Python Whitted-style Ray Tracer

Main entry point for rendering scenes.
"""

import argparse
import logging
import sys
import time

from prismtrace.renderer import Renderer, ImageWriteError, get_platform_info
from prismtrace.scene import RenderContext
from prismtrace.scene_parser import SceneParseError, load_scene
from prismtrace.scenes import create_demo_scene, create_single_sphere_scene
from prismtrace.settings import RenderSettings

BUILTIN_SCENES = {
    'demo': create_demo_scene,
    'sphere': create_single_sphere_scene,
}


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='PrismTrace - A Python Whitted-style Ray Tracer',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python main.py --scene demo --output render.png
  python main.py --scene scenes/room.yaml --depth 5 --output room.png
  python main.py --scene sphere --bands 32 --threads 8
        '''
    )

    parser.add_argument('--depth', type=int, default=None, help='Max recursion depth (default: 3)')
    parser.add_argument('--bands', type=int, default=None, help='Number of row-bands (default: 16)')
    parser.add_argument('--threads', type=int, default=None, help='Number of threads (0=auto)')
    parser.add_argument('--output', type=str, default='output/render.png', help='Output filename')
    parser.add_argument('--scene', type=str, default='demo',
                        help='Built-in scene (demo, sphere) or path to a YAML/JSON scene file')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    parser.add_argument('--info', action='store_true', help='Show platform info and exit')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    # Show platform info
    if args.info:
        info = get_platform_info()
        print("PrismTrace Platform Info:")
        print(f"  System: {info['system']}")
        print(f"  Machine: {info['machine']}")
        print(f"  Processor: {info['processor']}")
        print(f"  Python: {info['python_version']}")
        print(f"  CPU Cores: {info['cpu_count']}")
        print(f"  ARM: {info['is_arm']}")
        print(f"  x86: {info['is_x86']}")
        print(f"  Apple Silicon: {info['is_apple_silicon']}")
        return 0

    # Print header
    print("=" * 60)
    print("PrismTrace Ray Tracer")
    print("=" * 60)

    # Create scene
    print(f"\nLoading scene: {args.scene}")
    try:
        if args.scene in BUILTIN_SCENES:
            scene, camera = BUILTIN_SCENES[args.scene]()
            settings = RenderSettings()
        else:
            scene, camera, settings = load_scene(args.scene)
    except SceneParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Command line flags override the scene's render section
    try:
        settings = RenderSettings(
            width=settings.width,
            height=settings.height,
            max_depth=args.depth if args.depth is not None else settings.max_depth,
            num_bands=args.bands if args.bands is not None else settings.num_bands,
            num_threads=args.threads if args.threads is not None else settings.num_threads,
            max_shadow_depth=settings.max_shadow_depth,
            background_color=settings.background_color,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"  Primitives in scene: {len(scene)}")
    print(f"  Point lights: {len(scene.lights)}")

    print(f"\nRender Settings:")
    print(f"  Resolution: {settings.width}x{settings.height}")
    print(f"  Max Depth: {settings.max_depth}")
    print(f"  Bands: {settings.num_bands}")
    print(f"  Threads: {settings.num_threads}")

    context = RenderContext(scene, camera, settings)
    renderer = Renderer()

    # Progress tracking
    last_progress = [0]

    def progress_callback(progress: float):
        pct = int(progress * 100)
        if pct > last_progress[0]:
            last_progress[0] = pct
            bar_len = 40
            filled = int(bar_len * progress)
            bar = '█' * filled + '░' * (bar_len - filled)
            print(f'\rRendering: [{bar}] {pct}%', end='', flush=True)

    renderer.set_progress_callback(progress_callback)

    # Render
    print("\nRendering...")
    start_time = time.time()

    image = renderer.render(context)

    elapsed = time.time() - start_time
    print(f"\nRender completed in {elapsed:.2f} seconds")
    print(f"  Primary rays per second: {(settings.width * settings.height) / elapsed:.0f}")

    # Save image
    print(f"\nSaving to: {args.output}")
    try:
        renderer.save_image(image, args.output)
    except ImageWriteError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("\nDone!")
    return 0


if __name__ == '__main__':
    sys.exit(main())

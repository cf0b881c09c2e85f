#!/usr/bin/env python3
"""
Faceted Catalogue Builder - Main Build Script

Orchestrates the entire static site generation process:
1. Load and validate configuration
2. Load items (content directory, JSON feed, or demo data)
3. Precompute every filter combination per item type
4. Render listing pages, redirects and sitemap
"""

import argparse
import logging
import sys
import time
from pathlib import Path

import yaml

# Import our modules
sys.path.insert(0, str(Path(__file__).parent / "src"))

from build_cache import BuildCache
from content_source import ContentRepository, FeedClient, load_items_from_directory
from demo_data import generate_demo_items, get_demo_site_info
from facet_builder import FacetBuilder, ItemTypeConfig
from site_generator import SiteGenerator


# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

logger = logging.getLogger(__name__)


def load_config(config_path: Path) -> dict:
    """
    Load and validate configuration file.

    Args:
        config_path: Path to config.yaml

    Returns:
        Config dict

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config is invalid YAML
        KeyError: If required config keys are missing
    """
    logger.info(f"Loading configuration from {config_path}")

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    # Validate required top-level keys
    required_keys = ['site', 'content', 'item_types']
    missing = [key for key in required_keys if key not in config]
    if missing:
        raise KeyError(f"Missing required config keys: {missing}")

    content = config['content'] or {}
    if 'directory' not in content and 'feed_url' not in content:
        raise KeyError("content needs either 'directory' or 'feed_url'")

    if not config['item_types']:
        raise KeyError("item_types must list at least one item type")

    missing_tags = [i for i, entry in enumerate(config['item_types']) if 'tag' not in entry]
    if missing_tags:
        raise KeyError(f"item_types entries missing 'tag': {missing_tags}")

    logger.info("Configuration loaded successfully")
    return config


def resolve_config_path(config_arg: str, project_root: Path) -> Path:
    """
    Resolve --config the same way as every other configured path.

    Relative paths are taken from the project root, not the working
    directory, so the build behaves the same wherever it is started.
    """
    config_path = Path(config_arg).expanduser()
    if not config_path.is_absolute():
        config_path = project_root / config_path
    return config_path


def demo_config() -> dict:
    """Configuration used with --demo when no config file is given."""
    return {
        'site': get_demo_site_info(),
        'content': {},
        'item_types': [
            {'tag': 'products', 'permalink_dir': 'products', 'items_key': 'products', 'title': 'Products',
             'category_dir': 'categories'},
            {'tag': 'properties', 'permalink_dir': 'properties', 'items_key': 'properties', 'title': 'Holiday Properties'},
        ],
        'build': {'output_dir': 'output'},
    }


def load_items(config: dict, project_root: Path, args: argparse.Namespace) -> list:
    """
    Load items from the configured source.

    Args:
        config: Validated config dict
        project_root: Directory relative paths are resolved against
        args: Parsed command-line arguments

    Returns:
        List of normalized item dicts
    """
    if args.demo:
        logger.info("DEMO MODE - using generated items")
        return generate_demo_items()

    content_config = config['content']
    build_config = config.get('build', {})

    if content_config.get('feed_url'):
        client = FeedClient(
            feed_url=content_config['feed_url'],
            cache_dir=project_root / build_config.get('cache_dir', '.cache'),
            cache_ttl_minutes=build_config.get('cache_ttl_minutes', 15),
            headers=content_config.get('feed_headers')
        )
        items = client.fetch_items(force_refresh=args.force_refresh)
        logger.info(f"Feed requests made: {client.requests_made}")
        return items

    return load_items_from_directory(project_root / content_config['directory'])


def build_site(args: argparse.Namespace) -> None:
    """
    Main build function - orchestrates entire process.

    Args:
        args: Parsed command-line arguments
    """
    start_time = time.time()

    try:
        project_root = Path(__file__).resolve().parent
        config_path = resolve_config_path(args.config, project_root)

        if args.demo and not config_path.exists():
            config = demo_config()
        else:
            config = load_config(config_path)

        site_config = config['site']
        build_config = config.get('build', {})
        item_types = [ItemTypeConfig.from_dict(entry) for entry in config['item_types']]

        output_dir = project_root / build_config.get('output_dir', 'output')
        template_dir = project_root / 'templates'
        static_dir = project_root / 'static'

        if args.dry_run:
            logger.info("DRY RUN MODE - will not write output")

        items = load_items(config, project_root, args)
        if not items:
            logger.warning("No items found")
            return

        # One cache per build; discarded when the build ends
        cache = BuildCache(generation=int(start_time))
        repository = ContentRepository(items)
        builder = FacetBuilder(repository, cache)

        artifacts = []
        for item_type in item_types:
            artifacts.append(builder.build(item_type))
            artifacts.extend(builder.build_categories(item_type))

        if not args.dry_run:
            logger.info("Generating static site")
            generator = SiteGenerator(
                template_dir=template_dir,
                static_dir=static_dir,
                output_dir=output_dir,
                site_config=site_config
            )
            generator.generate_site(artifacts)
        else:
            logger.info("Skipping site generation (dry run)")

        # Print summary
        elapsed = time.time() - start_time
        stats = cache.stats()
        logger.info("=" * 60)
        logger.info("BUILD SUMMARY")
        logger.info("=" * 60)
        logger.info(f"Site: {site_config.get('title', '')}")
        logger.info(f"Total items: {len(items)}")
        for item_artifacts in artifacts:
            logger.info(
                f"  {item_artifacts.item_type.base_url}: "
                f"{item_artifacts.total_items} items, "
                f"{len(item_artifacts.pages)} pages, "
                f"{len(item_artifacts.redirects)} redirects"
            )
        logger.info(f"Cache: {stats['misses']} computed, {stats['hits']} reused")
        logger.info(f"Output directory: {output_dir}")
        logger.info(f"Time elapsed: {elapsed:.2f} seconds")
        logger.info("=" * 60)

    except Exception as e:
        logger.error(f"Build failed: {e}", exc_info=True)
        sys.exit(1)


def main():
    """Parse arguments and run build."""
    parser = argparse.ArgumentParser(
        description="Faceted Catalogue Static Site Generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                    # Use default config
  %(prog)s --config sites/shop1.yaml         # Use custom config
  %(prog)s --demo                             # Build from generated demo items
  %(prog)s --force-refresh                   # Ignore feed cache
  %(prog)s --dry-run                         # Compute facets without writing output
        """
    )

    parser.add_argument(
        '--config',
        default='config/config.yaml',
        help='Path to configuration file, relative paths from the project root (default: config/config.yaml)'
    )

    parser.add_argument(
        '--demo',
        action='store_true',
        help='Use generated demo items instead of the configured content source'
    )

    parser.add_argument(
        '--force-refresh',
        action='store_true',
        help='Ignore cache and fetch fresh data from the item feed'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Load items and compute facets but do not write output'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable debug logging'
    )

    args = parser.parse_args()

    # Set log level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Run build
    build_site(args)


if __name__ == '__main__':
    main()

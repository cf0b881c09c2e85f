"""
Static site generator using Jinja2 templates.
Renders faceted listing pages atomically to prevent broken output.
"""

import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List
from xml.etree import ElementTree as ET

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from facet_builder import FacetArtifacts
from sort_options import DEFAULT_SORT


logger = logging.getLogger(__name__)


class SiteGenerator:
    """
    Generates the static listing site from facet artifacts.

    Handles:
    - Rendering each item type's listing root and every search page
    - Writing a _redirects file for truncated search URLs
    - Sitemap generation
    - Atomic output (temp dir then swap)
    - Copying static assets
    """

    def __init__(
        self,
        template_dir: Path,
        static_dir: Path,
        output_dir: Path,
        site_config: Dict[str, Any]
    ):
        """
        Initialize site generator.

        Args:
            template_dir: Path to Jinja2 templates
            static_dir: Path to static assets (css, images)
            output_dir: Path where final site will be written
            site_config: Site configuration dict from config.yaml
        """
        self.template_dir = Path(template_dir)
        self.static_dir = Path(static_dir)
        self.output_dir = Path(output_dir)
        self.site_config = site_config

        self.jinja_env = Environment(
            loader=FileSystemLoader(self.template_dir),
            autoescape=True,
            undefined=StrictUndefined
        )

        self.jinja_env.filters['money'] = format_price

    def generate_site(self, artifacts: List[FacetArtifacts]) -> None:
        """
        Generate the complete static site.

        Uses atomic output: renders to temp dir, then swaps on success.

        Args:
            artifacts: One FacetArtifacts per configured item type

        Raises:
            Exception: If rendering fails
        """
        logger.info("Starting site generation")

        temp_dir = self.output_dir.parent / f"{self.output_dir.name}.tmp"

        try:
            if temp_dir.exists():
                shutil.rmtree(temp_dir)
            temp_dir.mkdir(parents=True, exist_ok=True)

            for item_artifacts in artifacts:
                self._render_listing_root(item_artifacts, temp_dir)
                self._render_search_pages(item_artifacts, temp_dir)

            self._write_redirects(artifacts, temp_dir)

            if self.site_config.get("generate_sitemap", True):
                self._generate_sitemap(artifacts, temp_dir)

            self._copy_static_assets(temp_dir)

            # Atomic swap: remove old output and rename temp
            if self.output_dir.exists():
                shutil.rmtree(self.output_dir)
            temp_dir.rename(self.output_dir)

            logger.info(f"Site generated successfully at {self.output_dir}")

        except Exception as e:
            logger.error(f"Site generation failed: {e}")
            if temp_dir.exists():
                shutil.rmtree(temp_dir)
            raise

    def _get_template_context(self, artifacts: FacetArtifacts) -> Dict[str, Any]:
        """
        Build common template context shared across an item type's pages.

        Args:
            artifacts: Facet artifacts for one item type

        Returns:
            Context dict for templates
        """
        item_type = artifacts.item_type
        return {
            "site": self.site_config,
            "item_type": item_type,
            "base_url": item_type.base_url,
            "total_items": artifacts.total_items,
            "generated_at_formatted": datetime.now(timezone.utc).strftime(
                "%B %d, %Y at %I:%M %p UTC"
            ),
        }

    def _write_page(self, output_dir: Path, url: str, html: str) -> Path:
        output_file = output_dir / url.strip("/") / "index.html"
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(html, encoding="utf-8")
        logger.debug(f"Rendered {output_file}")
        return output_file

    def _render_listing_root(self, artifacts: FacetArtifacts, output_dir: Path) -> None:
        """
        Render the unfiltered, default-sorted listing for an item type.

        Args:
            artifacts: Facet artifacts for one item type
            output_dir: Output directory path
        """
        item_type = artifacts.item_type
        logger.info(f"Rendering listing: {item_type.base_url}/")

        template = self.jinja_env.get_template("listing.html")
        context = self._get_template_context(artifacts)

        context.update({
            "page_title": item_type.title,
            "filter_description": [],
            "items": artifacts.items,
            "filter_ui": artifacts.listing_ui,
            "sort_key": DEFAULT_SORT,
        })

        html = template.render(**context)
        self._write_page(output_dir, item_type.base_url, html)
        # Bare-key redirects land on the search root
        self._write_page(output_dir, item_type.search_url, html)

    def _render_search_pages(self, artifacts: FacetArtifacts, output_dir: Path) -> None:
        """
        Render every filter/sort page for an item type.

        Args:
            artifacts: Facet artifacts for one item type
            output_dir: Output directory path
        """
        item_type = artifacts.item_type
        template = self.jinja_env.get_template("listing.html")

        logger.info(f"Rendering {len(artifacts.pages)} search pages for {item_type.base_url}")

        for page in artifacts.pages:
            context = self._get_template_context(artifacts)
            title = page["title"] or item_type.title
            context.update({
                "page_title": title,
                "filter_description": page["filter_description"],
                "items": page["items"],
                "filter_ui": page["filter_ui"],
                "sort_key": page["sort_key"],
            })

            self._write_page(output_dir, page["url"], template.render(**context))

    def _write_redirects(self, artifacts: List[FacetArtifacts], output_dir: Path) -> None:
        """
        Write a _redirects file ("from to status" per line).

        Args:
            artifacts: Facet artifacts for every item type
            output_dir: Output directory path
        """
        lines = []
        for item_artifacts in artifacts:
            for redirect in item_artifacts.redirects:
                lines.append(f"{redirect['from']} {redirect['to']} 301")

        redirects_file = output_dir / "_redirects"
        redirects_file.write_text("\n".join(lines) + ("\n" if lines else ""), encoding="utf-8")

        logger.info(f"Wrote {len(lines)} redirects to {redirects_file.name}")

    def _generate_sitemap(self, artifacts: List[FacetArtifacts], output_dir: Path) -> None:
        """
        Generate sitemap.xml for SEO.

        Only default-sort pages are listed; sort variants show the same items.

        Args:
            artifacts: Facet artifacts for every item type
            output_dir: Output directory path
        """
        logger.info("Generating sitemap.xml")

        base_url = self.site_config.get("base_url", "").rstrip("/")
        if not base_url:
            logger.warning("base_url not set in config, skipping sitemap")
            return

        urlset = ET.Element("urlset")
        urlset.set("xmlns", "http://www.sitemaps.org/schemas/sitemap/0.9")

        for item_artifacts in artifacts:
            url = ET.SubElement(urlset, "url")
            ET.SubElement(url, "loc").text = f"{base_url}{item_artifacts.item_type.base_url}/"
            ET.SubElement(url, "changefreq").text = "daily"
            ET.SubElement(url, "priority").text = "1.0"

            for page in item_artifacts.pages:
                if page["sort_key"] != DEFAULT_SORT:
                    continue
                url = ET.SubElement(urlset, "url")
                ET.SubElement(url, "loc").text = f"{base_url}{page['url']}"
                ET.SubElement(url, "changefreq").text = "daily"
                ET.SubElement(url, "priority").text = "0.6"

        tree = ET.ElementTree(urlset)
        ET.indent(tree, space="  ")
        sitemap_file = output_dir / "sitemap.xml"
        tree.write(sitemap_file, encoding="utf-8", xml_declaration=True)

        logger.debug(f"Rendered {sitemap_file}")

    def _copy_static_assets(self, output_dir: Path) -> None:
        """
        Copy static assets (CSS, images) to output directory.

        Args:
            output_dir: Output directory path
        """
        logger.info("Copying static assets")

        output_static = output_dir / "static"

        if self.static_dir.exists():
            shutil.copytree(
                self.static_dir,
                output_static,
                dirs_exist_ok=True
            )
            logger.debug(f"Copied {self.static_dir} to {output_static}")
        else:
            logger.warning(f"Static directory not found: {self.static_dir}")


def format_price(price: Any) -> str:
    """Jinja filter: {"value": 12.5, "currency": "GBP"} -> "GBP 12.50"."""
    if not price:
        return ""
    if isinstance(price, dict):
        return f"{price.get('currency', '')} {float(price.get('value', 0)):.2f}".strip()
    return f"{float(price):.2f}"

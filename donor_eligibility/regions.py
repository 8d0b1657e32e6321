import logging
from pathlib import Path
from typing import Iterable, Optional, Set

import rdflib
from rdflib.namespace import RDFS, SKOS
from rdflib.util import guess_format

logger = logging.getLogger(__name__)

REGION = rdflib.Namespace("http://example.org/donor-eligibility/region#")


def region_slug(name: str) -> str:
    """'Malaria Endemic Countries ' -> 'malaria-endemic-countries'."""
    return "-".join(name.strip().lower().split())


class RegionTaxonomy:
    """
    Wrapper around an rdflib.Graph describing how countries and areas nest
    inside broader regions. Travel deferral asks whether a visited place
    falls under one of the policy's risk regions.

    Regions are identified by slugs in the ``REGION`` namespace; nesting is
    expressed with ``rdfs:subClassOf`` or ``skos:broader``.
    """

    def __init__(self, ontology_dir: Optional[Path] = None):
        self.graph = rdflib.Graph()
        self.graph.bind("region", REGION)
        if ontology_dir is not None:
            self.load_ontologies(Path(ontology_dir))

    def load_ontologies(self, base_dir: Path) -> None:
        if not base_dir.exists():
            logger.warning("Region ontology directory %s does not exist", base_dir)
            return
        for pattern in ("*.ttl", "*.rdf", "*.owl"):
            for p in base_dir.rglob(pattern):
                try:
                    fmt = guess_format(str(p))
                    self.graph.parse(p, format=fmt)
                    logger.info("Loaded region ontology %s", p.relative_to(base_dir))
                except Exception as exc:
                    logger.warning("Failed to load region ontology %s: %s", p.name, exc)

    def resolve(self, name: str) -> rdflib.URIRef:
        return REGION[region_slug(name)]

    def label(self, name: str) -> str:
        lbl = self.graph.value(self.resolve(name), RDFS.label)
        if lbl:
            return str(lbl)
        return name

    def ancestors(self, name: str) -> Set[rdflib.URIRef]:
        """The region itself plus every broader region, transitively."""
        start = self.resolve(name)
        seen = {start}
        frontier = [start]
        while frontier:
            node = frontier.pop()
            for pred in (RDFS.subClassOf, SKOS.broader):
                for parent in self.graph.objects(node, pred):
                    if isinstance(parent, rdflib.URIRef) and parent not in seen:
                        seen.add(parent)
                        frontier.append(parent)
        return seen

    def within_any(self, name: str, regions: Iterable[str]) -> Optional[str]:
        """First of ``regions`` that contains ``name``, if any."""
        found = self.ancestors(name)
        for region in regions:
            if self.resolve(region) in found:
                return region
        return None

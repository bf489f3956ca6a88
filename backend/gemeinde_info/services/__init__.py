"""
Services layer for Gemeinde Info business logic.

MODULES:
- dataset/: Canonical municipality dataset stores
- discovery/: Registration page discovery (sitemap + homepage crawl)
- extraction/: AI extraction of hours, contact and registration details
- ai/: Generative model client
- cache/: Per-category TTL cache of extracted info

STANDALONE SERVICES:
- resolver: Query -> canonical municipality (strategy chain)
- opendata: BFS municipality directory (last resolver tier)
- municipality_urls: Known websites / registration pages
- school: School authority (Gemeinde or Schulkreis) and age guidance
- authority_info: Orchestrator behind the public operations
- http_client, url_utils, retry_utils: Networking helpers

ARCHITECTURE:
1. Resolution: resolver.MunicipalityResolver -> ResolvedAuthority
2. Cache: cache.InfoCache by (bfs_nummer, category, scope)
3. Discovery: discovery.DiscoveryManager -> sitemap-first + homepage fallback
4. Extraction: extraction.AIExtractor -> ExtractedInfo (never fails)
5. Schools: school.SchoolAuthorityResolver -> SchoolAuthority, then extraction
"""

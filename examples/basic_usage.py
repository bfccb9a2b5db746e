"""
Basic usage example for docimport.
"""

import asyncio
from pathlib import Path

from docimport import Actor, Config, ImportRequest, import_document
from docimport.ingestion import AttachmentRehoster, LocalAttachmentStore
from docimport.state import StateCodec

# Describe the upload
request = ImportRequest(
    actor=Actor(id="user-1", team_id="team-1"),
    mime_type="text/html",
    file_name="report.html",
    content=b"<h1>Quarterly Report</h1><p>Revenue grew to <b>$1.2M</b><br>this quarter.</p>",
)

# Inline images are written here
config = Config(max_title_length=100)
rehoster = AttachmentRehoster(LocalAttachmentStore(Path("attachments/")), config)

print("Importing...")
result = asyncio.run(import_document(request, rehoster, config))

print(f"\nTitle: {result.title}")
print(f"Emoji: {result.emoji}")
print(f"Text:\n{result.text}")
print(f"\nState: {len(result.state)} bytes")

# Decode the state back into its document tree
tree = StateCodec().decode(result.state)
print(f"Top-level nodes: {[node['type'] for node in tree['content']]}")

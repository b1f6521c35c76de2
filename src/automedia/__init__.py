"""
AutoMedia – script-to-slideshow pipeline.

  from automedia.application.pipeline import ProductionPipeline
  from automedia.adapters import default_adapters
  pipeline = ProductionPipeline(**default_adapters())
  pipeline.load_script_file("script.txt")
  pipeline.submit_credential(api_key, 5)

Image generation runs in batches, one per API key; when a batch pauses,
submit the next key and it resumes where it stopped.
"""

__version__ = "0.1.0"

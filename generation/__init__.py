"""
Quiz Generation Pipeline
generation/

Steps:
1. Content Chunker     — rotate a different section of the notes into each batch
2. Topic Extractor     — sample focus sentences from that section
3. Question Generator  — one JSON-mode LLM call per (type, batch), schema-validated
4. Validator           — typed conversion, structural checks, duplicate warnings
5. Orchestrator        — sequential batches, delays, id assignment, result report
6. Feedback Generator  — free-text feedback on essay answers
"""

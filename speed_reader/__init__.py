"""
Speed reader core package.

The library subpackage owns everything below the GUI shell: importing text
files into private storage, streaming bounded windows of words by absolute
index, and persisting the project catalog plus per-project reading sessions
as JSON documents. The commands module wraps it in the async
result-or-error-string interface the shell invokes.
"""

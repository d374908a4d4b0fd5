"""Domain layer for fintrack application.

Services are imported from their modules (``fintrack.domain.transaction``
and so on); the storage layer imports ``fintrack.domain.entities`` and a
package-level re-export here would make that import circular.
"""

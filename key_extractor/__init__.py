"""Key-signature alter extraction library.

This package locates and recognizes the sharps and flats of a key signature
from the staff-free pixels of a key area. The area breaks up into many
disconnected fragments, which have to be regrouped into compound glyphs,
graded by a shape classifier and assigned to the expected symbol slots
without any fragment being claimed twice.

The processing pipeline consists of:
1. Fragment building using connected components
2. Fragment pruning, to bound the combinatorial cost
3. Fragment linking and partitioning into connected subgraphs
4. Decomposition of subgraphs into compound glyphs, graded by the classifier
5. Mutual exclusion of candidates sharing fragments
6. Assignment of the best candidate to each slot

Example:
    Basic usage through the extractor API:

    >>> from key_extractor.extractor import KeyExtractor
    >>> from key_extractor.models import Shape
    >>>
    >>> extractor = KeyExtractor(source, staff, key_range, peaks, roi, classifier)
    >>> alters = extractor.assign_to_slots(Shape.SHARP)
"""

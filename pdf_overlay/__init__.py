"""
PDF overlay module.

Positioned text and signature annotations on top of an existing PDF,
viewport/page coordinate transforms, signature cropping, and the two
compositors (annotation export, image-to-page).
"""
